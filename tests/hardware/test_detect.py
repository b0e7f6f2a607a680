"""Tests for SysfsHardwareDetector against a fake sysfs/procfs tree."""

import pytest
from types import SimpleNamespace
from unittest.mock import patch

from eventstore_backup.hardware.detect import SysfsHardwareDetector


@pytest.fixture
def fake_root(tmp_path):
    sys_root = tmp_path / "sys"
    proc_root = tmp_path / "proc"

    (sys_root / "devices/system/cpu").mkdir(parents=True)
    (sys_root / "devices/system/cpu/present").write_text("0-5\n")

    for name, sectors in [("loop0", 1000), ("sda", 2 * 1024 ** 2), ("sdb", 256 * 1024 ** 2)]:
        (sys_root / "block" / name).mkdir(parents=True)
        (sys_root / "block" / name / "size").write_text(f"{sectors}\n")

    for zone in ("thermal_zone0", "thermal_zone1"):
        (sys_root / "class/thermal" / zone).mkdir(parents=True)
        (sys_root / "class/thermal" / zone / "temp").write_text("42000\n")
    (sys_root / "class/thermal/cooling_device0").mkdir()

    (proc_root / "net").mkdir(parents=True)
    (proc_root / "net/route").write_text(
        "Iface\tDestination\tGateway\tFlags\n"
        "eth1\t0000A8C0\t00000000\t0001\n"
        "enp3s0\t00000000\t0100A8C0\t0003\n"
    )
    return sys_root, proc_root


def test_detect(fake_root):
    sys_root, proc_root = fake_root
    detector = SysfsHardwareDetector(sys_root=sys_root, proc_root=proc_root)

    if_stats = {
        "lo": SimpleNamespace(mtu=65536),
        "enp3s0": SimpleNamespace(mtu=1500),
        "enp4s0": SimpleNamespace(mtu=9000),
    }
    with patch("eventstore_backup.hardware.detect.psutil.net_if_stats", return_value=if_stats), \
            patch("eventstore_backup.hardware.detect.psutil.disk_partitions", return_value=[]), \
            patch.object(SysfsHardwareDetector, "gpu_type", return_value=None):
        facts = detector.detect()

    assert facts.cpu_count == 6
    assert facts.primary_interface == "enp3s0"
    assert facts.camera_interface == "enp4s0"
    assert facts.disk_device == "sdb"
    assert facts.temperature_sensors == 2
    assert facts.gpu_type is None


def test_mount_source_selects_disk(fake_root):
    sys_root, proc_root = fake_root
    detector = SysfsHardwareDetector(sys_root=sys_root, proc_root=proc_root)
    partitions = [
        SimpleNamespace(device="/dev/sda1", mountpoint="/"),
        SimpleNamespace(device="/dev/nvme0n1p1", mountpoint="/var/data"),
    ]

    with patch("eventstore_backup.hardware.detect.psutil.disk_partitions", return_value=partitions):
        assert detector.mount_source() == "/dev/nvme0n1p1"


def test_cpu_count_fallback(tmp_path):
    detector = SysfsHardwareDetector(sys_root=tmp_path, proc_root=tmp_path)

    with patch("eventstore_backup.hardware.detect.psutil.cpu_count", return_value=3):
        assert detector.cpu_count() == 3
    assert detector.primary_interface() == "eth0"
    assert detector.disks() == []
    assert detector.temperature_sensors() == 0

"""Selection rules and dashboard layout derived from hardware facts."""

import re
from typing import Iterable, Optional

from .models import DiskDevice, HardwareFacts, MonitorSettings, NetworkInterface

STANDARD_MTU = 1500
MIN_DATA_DISK_BYTES = 10 * 1024 ** 3
DEFAULT_DISK = "sda"
DEFAULT_INTERFACE = "eth0"
GPU_TYPES = ("NvTegra", "NvSmi")

_CPU_RANGE_RE = re.compile(r"^(\d+)-(\d+)$")
_PARTITIONED_RE = re.compile(r"^(nvme\d+n\d+|mmcblk\d+)p\d+$")


def parse_cpu_range(cpu_range: str) -> Optional[int]:
    """Core count from /sys/devices/system/cpu/present, e.g. '0-7' -> 8."""
    cpu_range = cpu_range.strip()
    match = _CPU_RANGE_RE.match(cpu_range)
    if match:
        start, end = int(match.group(1)), int(match.group(2))
        return end - start + 1
    if cpu_range.isdigit():
        return 1
    return None


def select_camera_interface(interfaces: Iterable[NetworkInterface], primary: str) -> Optional[str]:
    """First jumbo-frame interface that is neither loopback nor the primary one."""
    for iface in interfaces:
        if iface.name in ("lo", primary):
            continue
        if iface.mtu > STANDARD_MTU:
            return iface.name
    return None


def base_disk_name(source: str) -> str:
    """Whole-disk name for a partition device, e.g. /dev/nvme0n1p2 -> nvme0n1."""
    name = source.strip()
    if name.startswith("/dev/"):
        name = name[len("/dev/"):]

    match = _PARTITIONED_RE.match(name)
    if match:
        return match.group(1)
    if re.match(r"^(nvme\d+n\d+|mmcblk\d+)$", name):
        return name
    return re.sub(r"\d+$", "", name)


def select_disk(
    mount_source: Optional[str],
    disks: Iterable[DiskDevice],
    min_size: int = MIN_DATA_DISK_BYTES,
) -> str:
    """Disk backing the data mount, else the first disk above min_size."""
    if mount_source:
        return base_disk_name(mount_source)
    for disk in disks:
        if disk.type == "disk" and disk.size_bytes > min_size:
            return disk.name
    return DEFAULT_DISK


def build_monitor_settings(facts: HardwareFacts) -> MonitorSettings:
    """Two-row dashboard layout for the detected hardware."""
    network = facts.primary_interface
    if facts.camera_interface:
        network = f"{network},{facts.camera_interface}"

    first_row = [f"CPU/{facts.cpu_count}"]
    if facts.temperature_sensors > 0:
        first_row.append(f"Temperature/{facts.temperature_sensors}")
    first_row += ["Docker", "ComputeLoad/3|col-span:2"]

    second_row = [f"Network:{facts.primary_interface}/2"]
    if facts.camera_interface:
        second_row.append(f"Network:{facts.camera_interface}/2")
    second_row.append(f"Disk:{facts.disk_device}/2")

    gpu = facts.gpu_type if facts.gpu_type in GPU_TYPES else "none"

    return MonitorSettings(
        network_interface=network,
        disk_device=facts.disk_device,
        gpu_collector_type=gpu,
        layout=[first_row, second_row],
    )

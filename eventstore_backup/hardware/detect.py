"""Hardware probing through sysfs, procfs and psutil."""

import shutil
from pathlib import Path
from typing import List, Optional

import psutil

from .._utils import logger
from .layout import (
    DEFAULT_INTERFACE,
    parse_cpu_range,
    select_camera_interface,
    select_disk,
)
from .models import DiskDevice, HardwareFacts, NetworkInterface

DATA_MOUNT = "/var/data"


class SysfsHardwareDetector:
    """Collects HardwareFacts from the running host."""

    def __init__(self, sys_root: Path = Path("/sys"), proc_root: Path = Path("/proc"), data_mount: str = DATA_MOUNT):
        self.sys_root = Path(sys_root)
        self.proc_root = Path(proc_root)
        self.data_mount = data_mount

    def _read(self, path: Path) -> Optional[str]:
        try:
            return path.read_text().strip()
        except OSError:
            return None

    def cpu_count(self) -> int:
        present = self._read(self.sys_root / "devices/system/cpu/present")
        count = parse_cpu_range(present) if present else None
        return count or psutil.cpu_count(logical=True) or 1

    def primary_interface(self) -> str:
        """Interface of the default route from /proc/net/route."""
        route = self._read(self.proc_root / "net/route")
        if route:
            for line in route.splitlines()[1:]:
                fields = line.split()
                if len(fields) > 1 and fields[1] == "00000000":
                    return fields[0]
        return DEFAULT_INTERFACE

    def interfaces(self) -> List[NetworkInterface]:
        return [
            NetworkInterface(name=name, mtu=stats.mtu)
            for name, stats in sorted(psutil.net_if_stats().items())
        ]

    def mount_source(self) -> Optional[str]:
        for partition in psutil.disk_partitions(all=True):
            if partition.mountpoint == self.data_mount:
                return partition.device
        return None

    def disks(self) -> List[DiskDevice]:
        block = self.sys_root / "block"
        if not block.is_dir():
            return []
        devices = []
        for entry in sorted(block.iterdir()):
            if entry.name.startswith(("loop", "ram", "zram")):
                continue
            sectors = self._read(entry / "size")
            if sectors is None or not sectors.isdigit():
                continue
            devices.append(DiskDevice(name=entry.name, size_bytes=int(sectors) * 512))
        return devices

    def gpu_type(self) -> Optional[str]:
        compatible = self._read(self.proc_root / "device-tree/compatible") or ""
        if Path("/etc/nv_tegra_release").exists() or "tegra" in compatible:
            return "NvTegra"
        if shutil.which("nvidia-smi"):
            return "NvSmi"
        return None

    def temperature_sensors(self) -> int:
        thermal = self.sys_root / "class/thermal"
        if not thermal.is_dir():
            return 0
        return sum(1 for zone in thermal.glob("thermal_zone*") if (zone / "temp").exists())

    def detect(self) -> HardwareFacts:
        primary = self.primary_interface()
        facts = HardwareFacts(
            cpu_count=self.cpu_count(),
            primary_interface=primary,
            camera_interface=select_camera_interface(self.interfaces(), primary),
            disk_device=select_disk(self.mount_source(), self.disks()),
            gpu_type=self.gpu_type(),
            temperature_sensors=self.temperature_sensors(),
        )
        logger.info(
            f"Detected hardware: {facts.cpu_count} CPUs, network {facts.primary_interface}"
            f"{', camera ' + facts.camera_interface if facts.camera_interface else ''}, "
            f"disk {facts.disk_device}, GPU {facts.gpu_type or 'none'}, "
            f"{facts.temperature_sensors} thermal zones"
        )
        return facts

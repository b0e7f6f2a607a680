from .detect import SysfsHardwareDetector
from .layout import (
    base_disk_name,
    build_monitor_settings,
    parse_cpu_range,
    select_camera_interface,
    select_disk,
)
from .models import DiskDevice, HardwareFacts, MonitorSettings, NetworkInterface
from .settings_doc import write_monitor_settings

__all__ = [
    "SysfsHardwareDetector",
    "base_disk_name",
    "build_monitor_settings",
    "parse_cpu_range",
    "select_camera_interface",
    "select_disk",
    "DiskDevice",
    "HardwareFacts",
    "MonitorSettings",
    "NetworkInterface",
    "write_monitor_settings",
]

"""Data models for the hardware descriptor."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class NetworkInterface(BaseModel):
    name: str
    mtu: int = 1500


class DiskDevice(BaseModel):
    name: str
    size_bytes: int
    type: str = "disk"


class HardwareFacts(BaseModel):
    """Detected hardware, before any layout decision."""

    cpu_count: int = Field(..., gt=0)
    primary_interface: str = "eth0"
    camera_interface: Optional[str] = None
    disk_device: str = "sda"
    gpu_type: Optional[str] = None  # "NvTegra", "NvSmi" or None
    temperature_sensors: int = Field(0, ge=0)


class MonitorSettings(BaseModel):
    """Performance monitor section of the runtime settings document."""

    model_config = ConfigDict(populate_by_name=True)

    network_interface: str = Field(..., alias="NetworkInterface")
    disk_device: str = Field(..., alias="DiskDevice")
    collection_interval_ms: int = Field(500, alias="CollectionIntervalMs")
    data_points_to_keep: int = Field(120, alias="DataPointsToKeep")
    gpu_collector_type: str = Field("none", alias="GpuCollectorType")
    layout: List[List[str]] = Field(..., alias="Layout")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)

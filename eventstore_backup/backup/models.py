"""Data models for backup/restore operations."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class BackupResult(BaseModel):
    """Outcome of a backup run; an empty file means fresh install, nothing to back up."""

    file: str = Field("", description="Full path of the created archive, empty for a no-op")
    version: Optional[str] = Field(None, exclude=True)
    size_bytes: int = Field(0, exclude=True)
    pruned: List[str] = Field(default_factory=list, exclude=True)

    @property
    def skipped(self) -> bool:
        return self.file == ""


class RestoreResult(BaseModel):
    """Outcome of a successful restore."""

    success: bool = True
    degraded: bool = Field(False, description="Server healthy but stats endpoint unreachable")
    archive: Optional[str] = Field(None, exclude=True)


class ErrorResult(BaseModel):
    """Machine-readable failure payload shared by every command."""

    success: bool = False
    error: str


class ArchiveInfo(BaseModel):
    """One archive in the backup store."""

    filename: str
    version: str = "unknown"
    git_tag_exists: bool = False
    size: str
    size_bytes: int
    created_date: str
    full_path: str


class BackupListing(BaseModel):
    """All archives in the store plus aggregate totals."""

    success: bool = True
    backups: List[ArchiveInfo] = Field(default_factory=list)
    total_count: int = 0
    total_size_bytes: int = 0
    total_size: str = "0 B"


class PruneResult(BaseModel):
    """Archives removed by a standalone retention pass."""

    success: bool = True
    retention_days: int
    deleted: List[str] = Field(default_factory=list)


class CleanupResult(BaseModel):
    success: bool = True
    target: str
    backup_file: Optional[str] = None
    restarted: bool = False


class TriggerResult(BaseModel):
    """What the daily backup trigger decided and why."""

    action: str  # "skipped", "backed_up"
    reason: str
    file: Optional[str] = None


class StatusReport(BaseModel):
    server_state: str  # "running_healthy", "running_unhealthy", "stopped"
    backup_dir: str
    backup_dir_exists: bool
    backup_count: int
    total_backup_size: str
    total_backup_size_bytes: int
    oldest_backup: Optional[str] = None
    newest_backup: Optional[str] = None
    data_dir: str
    data_size: str
    retention_days: int
    backups_to_prune: int
    generated_at: datetime = Field(default_factory=datetime.now)

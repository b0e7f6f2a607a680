"""Backup and restore of the EventStore data directory."""

from .manager import BackupManager
from .restore import RestoreManager, RollbackSnapshot
from .cleanup import CleanupManager, CleanupTarget
from .trigger import BackupTrigger
from .classifier import FileRole, classify, is_fresh_install
from .store import BackupStore
from .lock import BackupLock

__all__ = [
    "BackupManager",
    "RestoreManager",
    "RollbackSnapshot",
    "CleanupManager",
    "CleanupTarget",
    "BackupTrigger",
    "FileRole",
    "classify",
    "is_fresh_install",
    "BackupStore",
    "BackupLock",
]

"""Error hierarchy for backup, restore and cleanup operations."""

from typing import Optional


class DataProtectionError(Exception):
    """Base exception for data protection operations."""
    pass


# Precondition failures: rejected before anything is mutated

class InvalidArchiveNameError(DataProtectionError):
    def __init__(self, name: str):
        super().__init__(
            f"Invalid backup file name '{name}': must be in format backup-YYYYMMDD-HHMMSS.tar.gz"
        )
        self.name = name


class ArchiveNotFoundError(DataProtectionError):
    def __init__(self, path):
        super().__init__(f"Backup file not found: {path}")
        self.path = path


class ArchiveUnreadableError(DataProtectionError):
    def __init__(self, path):
        super().__init__(f"Backup file is not readable or is empty: {path}")
        self.path = path


class NoDatabaseDataError(DataProtectionError):
    def __init__(self, data_dir):
        super().__init__(f"No EventStore data found in: {data_dir}")
        self.data_dir = data_dir


# Concurrency

class BackupAlreadyRunningError(DataProtectionError):
    def __init__(self, pid: int):
        super().__init__(f"Backup is already running (PID: {pid})")
        self.pid = pid


# Structural

class EmptyBackupError(DataProtectionError):
    def __init__(self):
        super().__init__("Backup directory is empty - no data was copied")


class CorruptArchiveError(DataProtectionError):
    """Archive extracted but does not have the expected layout."""
    pass


class MissingCheckpointError(DataProtectionError):
    def __init__(self, name: str = "chaser.chk"):
        super().__init__(f"Critical file missing: {name} not found in backup")
        self.name = name


# External tool / step failures

class StepFailedError(DataProtectionError):
    """A filesystem or process step failed; wraps the underlying cause."""

    def __init__(self, step: str, cause: Optional[BaseException] = None):
        message = f"{step} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.step = step
        self.cause = cause


# Timeouts

class HealthCheckFailedError(DataProtectionError):
    def __init__(self, timeout: float):
        super().__init__(f"EventStore failed to become healthy within {timeout:g}s")
        self.timeout = timeout


# Migrations

class MigrationScriptNotFoundError(DataProtectionError):
    def __init__(self, direction: str, version: str, directory):
        super().__init__(f"Migration script not found: {direction}-{version} in {directory}")
        self.direction = direction
        self.version = version

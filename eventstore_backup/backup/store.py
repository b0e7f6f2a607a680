"""Backup store: the directory holding archives and their version tags."""

import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .._utils import logger, format_size
from .exceptions import StepFailedError
from .models import ArchiveInfo, BackupListing
from .utils import ARCHIVE_GLOB, ARCHIVE_SUFFIX, version_file_for

SECONDS_PER_DAY = 86400


class BackupStore:
    """Enumerate, tag, prune and delete archives in a backup directory."""

    def __init__(self, backup_dir: Path):
        self.backup_dir = Path(backup_dir)

    def ensure(self) -> None:
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StepFailedError("create backup directory", e) from e

    def archives(self) -> List[Path]:
        """All archive files, newest first by name."""
        if not self.backup_dir.is_dir():
            return []
        return sorted(
            (p for p in self.backup_dir.glob(ARCHIVE_GLOB) if p.is_file()),
            key=lambda p: p.name,
            reverse=True,
        )

    def path_for(self, filename: str) -> Path:
        return self.backup_dir / Path(filename).name

    def read_version(self, archive_path: Path) -> Optional[str]:
        version_file = version_file_for(archive_path)
        if not version_file.is_file():
            return None
        version = version_file.read_text().strip()
        return version or None

    def write_version(self, archive_path: Path, version: str) -> Path:
        version_file = version_file_for(archive_path)
        try:
            version_file.write_text(f"{version}\n")
        except OSError as e:
            raise StepFailedError("write version tag", e) from e
        logger.debug(f"Version tag saved: {version_file.name} ({version})")
        return version_file

    def describe(self, archive_path: Path) -> ArchiveInfo:
        stat = archive_path.stat()
        version = self.read_version(archive_path)
        created = datetime.fromtimestamp(stat.st_mtime).astimezone()
        return ArchiveInfo(
            filename=archive_path.name,
            version=version or "unknown",
            git_tag_exists=version is not None,
            size=format_size(stat.st_size),
            size_bytes=stat.st_size,
            created_date=created.isoformat(timespec="seconds"),
            full_path=str(archive_path),
        )

    def listing(self) -> BackupListing:
        backups = [self.describe(p) for p in self.archives()]
        total = sum(b.size_bytes for b in backups)
        return BackupListing(
            backups=backups,
            total_count=len(backups),
            total_size_bytes=total,
            total_size=format_size(total),
        )

    def latest(self) -> Optional[Path]:
        """Most recently modified archive."""
        archives = self.archives()
        if not archives:
            return None
        return max(archives, key=lambda p: p.stat().st_mtime)

    def oldest(self) -> Optional[Path]:
        archives = self.archives()
        if not archives:
            return None
        return min(archives, key=lambda p: p.stat().st_mtime)

    def has_archive_for_day(self, day: str) -> bool:
        """day in YYYYMMDD form."""
        if not self.backup_dir.is_dir():
            return False
        return any(p.is_file() for p in self.backup_dir.glob(f"backup-{day}-*{ARCHIVE_SUFFIX}"))

    def expired(self, retention_days: int, now: Optional[float] = None) -> List[Path]:
        """Archives whose age exceeds retention_days, regardless of how many remain."""
        now = time.time() if now is None else now
        cutoff = now - retention_days * SECONDS_PER_DAY
        return [p for p in self.archives() if p.stat().st_mtime < cutoff]

    def prune(self, retention_days: int, now: Optional[float] = None) -> List[str]:
        logger.info(f"Cleaning up old backups (older than {retention_days} days)...")

        deleted = []
        for archive_path in self.expired(retention_days, now):
            logger.info(f"Deleting old backup: {archive_path.name}")
            try:
                archive_path.unlink(missing_ok=True)
            except OSError as e:
                raise StepFailedError(f"delete old backup {archive_path.name}", e) from e
            deleted.append(archive_path.name)

        if deleted:
            logger.info(f"Deleted {len(deleted)} old backup(s)")
        else:
            logger.info("No old backups to delete")
        return deleted

    def delete(self, filename: str) -> bool:
        """Delete an archive and its version tag.

        Returns:
            True if deleted, False if not found
        """
        archive_path = self.path_for(filename)
        if not archive_path.is_file():
            return False

        archive_path.unlink()

        version_file = version_file_for(archive_path)
        if version_file.exists():
            version_file.unlink()

        logger.info(f"Deleted backup: {archive_path.name}")
        return True

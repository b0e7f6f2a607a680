"""Backup orchestration for the EventStore data directory."""

import asyncio
import shutil
from fnmatch import fnmatch
from pathlib import Path
from typing import Optional, List

from .._utils import logger, timestamp_now, format_size
from ..config import DataProtectionConfig
from ..server import ServerController
from .classifier import (
    CHECKPOINT_PATTERN,
    FileRole,
    group_entries,
    has_database_artifacts,
    is_fresh_install,
)
from .exceptions import (
    EmptyBackupError,
    NoDatabaseDataError,
    StepFailedError,
)
from .lock import BackupLock
from .models import BackupResult, BackupListing, PruneResult
from .store import BackupStore
from .utils import archive_stem, create_archive, generate_archive_name


def _copy_file(source: Path, data_dir: Path, staging_dir: Path) -> None:
    target = staging_dir / source.relative_to(data_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, target)


def _copy_index_checkpoints(data_dir: Path, staging_dir: Path, index_dirs: List[Path]) -> int:
    copied = 0
    for index_dir in index_dirs:
        for path in sorted(index_dir.rglob(CHECKPOINT_PATTERN)):
            if path.is_file():
                _copy_file(path, data_dir, staging_dir)
                copied += 1
    return copied


def _copy_index_tree(data_dir: Path, staging_dir: Path, index_dirs: List[Path]) -> int:
    copied = 0
    for index_dir in index_dirs:
        (staging_dir / index_dir.relative_to(data_dir)).mkdir(parents=True, exist_ok=True)
        for path in sorted(index_dir.rglob("*")):
            if path.is_dir():
                (staging_dir / path.relative_to(data_dir)).mkdir(parents=True, exist_ok=True)
            elif path.is_file() and not fnmatch(path.name, CHECKPOINT_PATTERN):
                _copy_file(path, data_dir, staging_dir)
                copied += 1
    return copied


def _copy_top_level(data_dir: Path, staging_dir: Path, files: List[Path]) -> int:
    for path in files:
        _copy_file(path, data_dir, staging_dir)
    return len(files)


class BackupManager:
    """Create, list and delete backups of the EventStore data directory."""

    def __init__(
        self,
        config: DataProtectionConfig,
        controller: Optional[ServerController] = None,
    ):
        """Initialize backup manager.

        Args:
            config: Paths, server and retention settings
            controller: Server controller, only needed when the server is
                stopped during backup
        """
        self.config = config
        self.data_dir = config.paths.data_dir
        self.store = BackupStore(config.paths.backup_dir)
        self.lock = BackupLock(config.paths.lock_file)
        self.controller = controller

    async def create_backup(self, version: Optional[str] = None) -> BackupResult:
        """Create a full backup of the data directory.

        A fresh installation short-circuits to an empty result even when a
        version is supplied.

        Args:
            version: Optional version tag written next to the archive

        Returns:
            BackupResult with the archive path, or an empty path for a fresh install
        """
        if is_fresh_install(self.data_dir):
            logger.info("Fresh installation detected - no backup needed")
            return BackupResult(file="")

        logger.info("EventStore backup started")
        self.store.ensure()
        self.lock.acquire()

        timestamp = timestamp_now()
        archive_name = generate_archive_name(timestamp)
        staging_dir = self.store.backup_dir / archive_stem(archive_name)
        archive_path = self.store.backup_dir / archive_name
        was_running = False

        try:
            if not has_database_artifacts(self.data_dir):
                raise NoDatabaseDataError(self.data_dir)
            if archive_path.exists() or staging_dir.exists():
                raise StepFailedError("prepare", FileExistsError(f"{archive_name} already exists"))

            if self.config.stop_server_during_backup and self.controller is not None:
                was_running = await self.controller.stop(
                    self.config.server.stop_timeout, self.config.server.stop_poll_interval
                )

            try:
                await self._copy_data(staging_dir)
            finally:
                if was_running:
                    await self.controller.start()

            archive_size = await create_archive(staging_dir, archive_path)

            if version:
                self.store.write_version(archive_path, version)

            pruned = self.store.prune(self.config.retention.retention_days)

            logger.info(f"Backup completed successfully: {archive_name} ({format_size(archive_size)})")
            return BackupResult(
                file=str(archive_path),
                version=version,
                size_bytes=archive_size,
                pruned=pruned,
            )

        finally:
            if staging_dir.exists():
                shutil.rmtree(staging_dir, ignore_errors=True)
            self.lock.release()

    async def _copy_data(self, staging_dir: Path) -> None:
        logger.info(f"Starting EventStore backup to: {staging_dir}")
        try:
            staging_dir.mkdir(parents=True)
        except OSError as e:
            raise StepFailedError("create staging directory", e) from e

        groups = group_entries(self.data_dir)
        index_dirs = groups[FileRole.INDEX]

        # Order follows the EventStore file-copy backup procedure
        steps = [
            ("index checkpoints", _copy_index_checkpoints, index_dirs),
            ("index files", _copy_index_tree, index_dirs),
            ("database checkpoints", _copy_top_level, groups[FileRole.CHECKPOINT]),
            ("chunk files", _copy_top_level, groups[FileRole.CHUNK]),
        ]
        for label, copy, entries in steps:
            logger.info(f"Copying {label}...")
            try:
                copied = await asyncio.to_thread(copy, self.data_dir, staging_dir, entries)
            except OSError as e:
                raise StepFailedError(f"copy {label}", e) from e
            if copied == 0:
                logger.warning(f"No {label} found")

        if not any(staging_dir.iterdir()):
            raise EmptyBackupError()

        logger.info("Data copy completed successfully")

    async def list_backups(self) -> BackupListing:
        """List all available backups with aggregate totals."""
        return self.store.listing()

    async def expired_backups(self) -> List[Path]:
        """Archives older than the retention window."""
        return self.store.expired(self.config.retention.retention_days)

    async def prune_backups(self) -> PruneResult:
        """Apply the retention window without taking a new backup."""
        retention_days = self.config.retention.retention_days
        deleted = self.store.prune(retention_days)
        return PruneResult(retention_days=retention_days, deleted=deleted)

    async def delete_backup(self, filename: str) -> bool:
        """Delete backup archive and its version tag.

        Returns:
            True if deleted, False if not found
        """
        return self.store.delete(filename)

    async def get_backup_path(self, filename: str) -> Optional[Path]:
        archive_path = self.store.path_for(filename)
        return archive_path if archive_path.is_file() else None

"""Restore orchestration: replace live EventStore data with an archive."""

import asyncio
import os
import shutil
import time
from pathlib import Path
from typing import List, Optional, Union

from .._utils import logger, timestamp_now, has_entries
from ..config import DataProtectionConfig
from ..server import ServerController, ServerControlError
from .classifier import CHECKPOINT_PATTERN, INDEX_DIR_NAME
from .exceptions import (
    ArchiveNotFoundError,
    ArchiveUnreadableError,
    CorruptArchiveError,
    HealthCheckFailedError,
    MissingCheckpointError,
    StepFailedError,
)
from .models import RestoreResult
from .store import BackupStore
from .utils import archive_stem, compute_checksum, extract_archive, validate_archive_name

SNAPSHOT_PREFIX = "data.bak."
CHASER_CHECKPOINT = "chaser.chk"
TRUNCATE_CHECKPOINT = "truncate.chk"
DIR_MODE = 0o755
FILE_MODE = 0o644


class RollbackSnapshot:
    """Two-phase guard around the destructive replace of the data directory.

    stage() renames the live directory aside and recreates it empty.
    commit() deletes the snapshot once the restore succeeded; keep() leaves
    it in place for manual recovery.
    """

    def __init__(self, data_dir: Path, timestamp: Optional[str] = None):
        self.data_dir = Path(data_dir)
        self.timestamp = timestamp or timestamp_now()
        self.path: Optional[Path] = None

    @property
    def staged(self) -> bool:
        return self.path is not None

    def stage(self) -> Optional[Path]:
        logger.info("Clearing existing EventStore data...")
        if has_entries(self.data_dir):
            snapshot = self.data_dir.parent / f"{SNAPSHOT_PREFIX}{self.timestamp}"
            logger.info(f"Backing up existing data to: {snapshot}")
            try:
                os.rename(self.data_dir, snapshot)
                self.data_dir.mkdir(parents=True)
            except OSError as e:
                raise StepFailedError("snapshot current data", e) from e
            self.path = snapshot
        else:
            if not self.data_dir.exists():
                logger.info(f"Data directory doesn't exist, creating: {self.data_dir}")
            try:
                self.data_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StepFailedError("create data directory", e) from e
        logger.info("Data directory cleared")
        return self.path

    def commit(self) -> None:
        if self.path is not None and self.path.exists():
            logger.info(f"Removing backup of old data: {self.path.name}")
            shutil.rmtree(self.path)
        self.path = None

    def keep(self) -> None:
        if self.path is not None:
            logger.warning(f"Previous data left in place for manual recovery: {self.path}")


def collect_stale_snapshots(parent: Path, max_age_hours: int, now: Optional[float] = None) -> List[Path]:
    """Rollback snapshot directories older than max_age_hours."""
    if not parent.is_dir():
        return []
    now = time.time() if now is None else now
    cutoff = now - max_age_hours * 3600
    return sorted(
        p for p in parent.glob(f"{SNAPSHOT_PREFIX}*")
        if p.is_dir() and p.stat().st_mtime < cutoff
    )


def _copy_tree(source: Path, target: Path) -> None:
    for entry in source.iterdir():
        destination = target / entry.name
        if entry.is_dir():
            shutil.copytree(entry, destination, dirs_exist_ok=True)
        else:
            shutil.copy2(entry, destination)


class RestoreManager:
    """Restore EventStore data from a backup archive."""

    def __init__(self, config: DataProtectionConfig, controller: ServerController, always_restart: bool = False):
        """Initialize restore manager.

        Args:
            config: Paths, server and retention settings
            controller: Server controller used to stop/start/probe EventStore
            always_restart: Start the server afterwards even if it was stopped
        """
        self.config = config
        self.data_dir = config.paths.data_dir
        self.store = BackupStore(config.paths.backup_dir)
        self.controller = controller
        self.always_restart = always_restart

    def resolve_archive(self, archive: Union[str, Path]) -> Path:
        """Validate the archive name and check the file before anything is touched."""
        name = validate_archive_name(Path(archive).name)
        archive_path = self.store.path_for(name)

        if not archive_path.is_file():
            raise ArchiveNotFoundError(archive_path)
        if not os.access(archive_path, os.R_OK) or archive_path.stat().st_size == 0:
            raise ArchiveUnreadableError(archive_path)

        logger.info(f"Backup file validation passed: {name}")
        return archive_path

    def cleanup_stale_snapshots(self) -> List[str]:
        removed = []
        parent = self.config.paths.snapshot_parent
        for snapshot in collect_stale_snapshots(parent, self.config.retention.rollback_max_age_hours):
            logger.info(f"Removing old backup: {snapshot.name}")
            try:
                shutil.rmtree(snapshot)
            except OSError as e:
                raise StepFailedError(f"remove old snapshot {snapshot.name}", e) from e
            removed.append(snapshot.name)
        return removed

    async def restore_backup(self, archive: Union[str, Path]) -> RestoreResult:
        """Replace the live data directory with the contents of an archive.

        Args:
            archive: Archive file name or path; only the name is used and it
                is resolved inside the backup directory

        Returns:
            RestoreResult; degraded is set when only the stats endpoint failed
        """
        archive_path = self.resolve_archive(archive)
        logger.info(f"Starting EventStore restore from: {archive_path.name}")

        self.cleanup_stale_snapshots()

        server = self.config.server
        try:
            was_running = await self.controller.stop(server.stop_timeout, server.stop_poll_interval)
        except ServerControlError as e:
            raise StepFailedError("stop EventStore", e) from e

        snapshot = RollbackSnapshot(self.data_dir)
        extract_dir = self.store.backup_dir / f".restore-{snapshot.timestamp}"

        try:
            snapshot.stage()

            extracted = await self._extract(archive_path, extract_dir)
            await self._copy_into_data_dir(extracted)
            self._create_truncate_checkpoint()
            await self._fix_permissions()

            degraded = False
            if was_running or self.always_restart:
                degraded = await self._start_and_verify()
            else:
                logger.info("EventStore was not running before restore, leaving it stopped")

            snapshot.commit()
        except BaseException:
            snapshot.keep()
            raise
        finally:
            if extract_dir.exists():
                logger.info("Cleaning up temporary extraction directory")
                shutil.rmtree(extract_dir, ignore_errors=True)

        logger.info("Restore completed successfully!")
        return RestoreResult(
            success=True,
            degraded=degraded,
            archive=str(archive_path),
        )

    async def _extract(self, archive_path: Path, extract_dir: Path) -> Path:
        await extract_archive(archive_path, extract_dir)

        extracted = extract_dir / archive_stem(archive_path.name)
        if not extracted.is_dir():
            raise CorruptArchiveError(f"Extracted backup directory not found: {extracted.name}")
        if not has_entries(extracted):
            raise CorruptArchiveError("Extracted backup directory is empty")

        logger.info(f"Backup extracted successfully to: {extracted}")
        return extracted

    async def _copy_into_data_dir(self, extracted: Path) -> None:
        logger.info("Copying backup data to EventStore data directory...")
        try:
            await asyncio.to_thread(_copy_tree, extracted, self.data_dir)
        except OSError as e:
            raise StepFailedError("copy backup data", e) from e
        logger.info("Data files copied successfully")

    def _create_truncate_checkpoint(self) -> None:
        logger.info(f"Creating {TRUNCATE_CHECKPOINT} from {CHASER_CHECKPOINT}...")
        chaser = self.data_dir / CHASER_CHECKPOINT
        truncate = self.data_dir / TRUNCATE_CHECKPOINT

        if not chaser.is_file():
            raise MissingCheckpointError(CHASER_CHECKPOINT)

        try:
            shutil.copyfile(chaser, truncate)
        except OSError as e:
            raise StepFailedError(f"create {TRUNCATE_CHECKPOINT}", e) from e

        if compute_checksum(truncate) != compute_checksum(chaser):
            raise StepFailedError(f"create {TRUNCATE_CHECKPOINT}", RuntimeError("content mismatch"))
        logger.info(f"{TRUNCATE_CHECKPOINT} created successfully")

    async def _fix_permissions(self) -> None:
        logger.info("Fixing file permissions...")
        try:
            await asyncio.to_thread(self._normalize_tree)
        except OSError as e:
            raise StepFailedError("fix permissions", e) from e
        logger.info("Permissions fixed")

    def _normalize_tree(self) -> None:
        uid = self.config.server.owner_uid
        gid = self.config.server.owner_gid
        chown = uid is not None or gid is not None

        paths = [self.data_dir, *self.data_dir.rglob("*")]
        for path in paths:
            if path.is_symlink():
                continue
            if chown:
                os.chown(path, -1 if uid is None else uid, -1 if gid is None else gid)
            os.chmod(path, DIR_MODE if path.is_dir() else FILE_MODE)

        # Checkpoints and the index tree must stay readable by the service
        for checkpoint in self.data_dir.glob(CHECKPOINT_PATTERN):
            os.chmod(checkpoint, FILE_MODE)
        index_dir = self.data_dir / INDEX_DIR_NAME
        if index_dir.is_dir():
            os.chmod(index_dir, DIR_MODE)

    async def _start_and_verify(self) -> bool:
        """Start EventStore and wait for health.

        Returns:
            True when the server is healthy but the stats endpoint is not
        """
        server = self.config.server
        try:
            await self.controller.start()
        except ServerControlError as e:
            raise StepFailedError("start EventStore", e) from e

        if not await self.controller.wait_healthy(server.health_timeout, server.health_interval):
            raise HealthCheckFailedError(server.health_timeout)

        logger.info("EventStore is healthy and responding")
        if await self.controller.stats_reachable():
            logger.info("EventStore stats endpoint accessible")
            return False

        logger.warning("EventStore health check passed but stats endpoint not accessible")
        return True

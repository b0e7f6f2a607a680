"""Clear EventStore data and/or logs, optionally backing up first."""

import os
import shutil
from enum import Enum
from pathlib import Path
from typing import List

from .._utils import logger, format_size, directory_size, count_files
from ..config import DataProtectionConfig
from ..server import ServerController, ServerControlError
from .exceptions import StepFailedError
from .manager import BackupManager
from .models import CleanupResult


class CleanupTarget(str, Enum):
    DATA = "data"
    LOGS = "logs"
    ALL = "all"

    @property
    def includes_data(self) -> bool:
        return self in (CleanupTarget.DATA, CleanupTarget.ALL)

    @property
    def includes_logs(self) -> bool:
        return self in (CleanupTarget.LOGS, CleanupTarget.ALL)


def describe_directory(directory: Path, name: str) -> str:
    if not directory.is_dir():
        return f"{name}: Directory doesn't exist"
    return f"{name}: {format_size(directory_size(directory))} ({count_files(directory)} files)"


def empty_directory(directory: Path) -> None:
    """Remove everything inside directory, keeping (or creating) the directory itself."""
    if not directory.exists():
        logger.info(f"Directory doesn't exist, creating: {directory}")
        directory.mkdir(parents=True)
        return
    for entry in directory.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
    os.chmod(directory, 0o755)


class CleanupManager:
    """Stop EventStore, wipe the selected directories and bring it back."""

    def __init__(self, config: DataProtectionConfig, controller: ServerController):
        self.config = config
        self.controller = controller

    def directories(self, target: CleanupTarget) -> List[tuple]:
        paths = self.config.paths
        selected = []
        if target.includes_data:
            selected.append(("EventStore Data", paths.data_dir))
        if target.includes_logs:
            selected.append(("EventStore Logs", paths.logs_dir))
        return selected

    def summary(self, target: CleanupTarget) -> List[str]:
        return [describe_directory(path, name) for name, path in self.directories(target)]

    async def cleanup(
        self,
        target: CleanupTarget = CleanupTarget.ALL,
        backup_first: bool = False,
        restart: bool = False,
    ) -> CleanupResult:
        """Clean the target directories.

        Args:
            target: Which directories to wipe
            backup_first: Run a full backup before wiping data
            restart: Start EventStore afterwards even if it was not running

        Returns:
            CleanupResult with the backup path (if any) and restart state
        """
        logger.info(f"Starting EventStore cleanup (target: {target.value})")
        server = self.config.server

        try:
            was_running = await self.controller.stop(server.stop_timeout, server.stop_poll_interval)
        except ServerControlError as e:
            raise StepFailedError("stop EventStore", e) from e

        backup_file = None
        if backup_first and target.includes_data:
            logger.info("Creating backup before cleanup...")
            result = await BackupManager(self.config).create_backup()
            if result.skipped:
                logger.info("No data to backup - data directory is empty or doesn't exist")
            else:
                backup_file = result.file

        for name, directory in self.directories(target):
            logger.info(f"Cleaning {name} directory...")
            try:
                empty_directory(directory)
            except OSError as e:
                raise StepFailedError(f"clean {name.lower()}", e) from e
            logger.info(f"{name} directory cleaned")

        restarted = False
        if restart or was_running:
            try:
                await self.controller.start()
            except ServerControlError as e:
                raise StepFailedError("start EventStore", e) from e
            restarted = True

        logger.info("Cleanup completed successfully")
        return CleanupResult(target=target.value, backup_file=backup_file, restarted=restarted)

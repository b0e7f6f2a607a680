"""Periodic controller: make sure a backup exists for today."""

from datetime import datetime
from typing import Optional

from .._utils import logger
from ..config import DataProtectionConfig
from ..server import ServerController
from .lock import BackupLock
from .manager import BackupManager
from .models import TriggerResult
from .store import BackupStore


class BackupTrigger:
    """Run a backup when none exists for the current day.

    Meant to be invoked on a schedule (every 30 minutes in the reference
    deployment). Skips quietly when EventStore is down or a backup is running.
    """

    def __init__(self, config: DataProtectionConfig, controller: ServerController):
        self.config = config
        self.controller = controller
        self.store = BackupStore(config.paths.backup_dir)
        self.lock = BackupLock(config.paths.lock_file)

    async def run(self, today: Optional[str] = None) -> TriggerResult:
        today = today or datetime.now().strftime("%Y%m%d")
        logger.info("Backup controller check started")

        if not await self.controller.is_running() or not await self.controller.healthy():
            logger.info("EventStore is not running or unhealthy, skipping backup check")
            return TriggerResult(action="skipped", reason="server_unavailable")

        if self.lock.is_locked():
            logger.info("Backup is already running, skipping")
            return TriggerResult(action="skipped", reason="backup_running")

        archives = self.store.archives()
        latest = archives[0].name if archives else "none"

        if self.store.has_archive_for_day(today):
            logger.info(f"Today's backup already exists (Total: {len(archives)}, Latest: {latest})")
            return TriggerResult(action="skipped", reason="backup_exists")

        logger.info(f"No backup for today ({today}) found (Total: {len(archives)}, Latest: {latest})")
        result = await BackupManager(self.config, self.controller).create_backup()
        if result.skipped:
            return TriggerResult(action="skipped", reason="fresh_install")

        logger.info("Backup controller completed successfully")
        return TriggerResult(action="backed_up", reason="no_backup_today", file=result.file)

"""Backup status report."""

from .._utils import format_size, directory_size
from ..config import DataProtectionConfig
from ..server import ServerController
from .models import StatusReport
from .store import BackupStore


async def server_state(controller: ServerController) -> str:
    if not await controller.is_running():
        return "stopped"
    if await controller.healthy():
        return "running_healthy"
    return "running_unhealthy"


async def collect_status(config: DataProtectionConfig, controller: ServerController) -> StatusReport:
    store = BackupStore(config.paths.backup_dir)
    listing = store.listing()
    oldest = store.oldest()
    newest = store.latest()
    data_dir = config.paths.data_dir

    return StatusReport(
        server_state=await server_state(controller),
        backup_dir=str(store.backup_dir),
        backup_dir_exists=store.backup_dir.is_dir(),
        backup_count=listing.total_count,
        total_backup_size=listing.total_size,
        total_backup_size_bytes=listing.total_size_bytes,
        oldest_backup=oldest.name if oldest else None,
        newest_backup=newest.name if newest else None,
        data_dir=str(data_dir),
        data_size=format_size(directory_size(data_dir)),
        retention_days=config.retention.retention_days,
        backups_to_prune=len(store.expired(config.retention.retention_days)),
    )

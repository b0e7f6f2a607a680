"""Command line entry point: eventstore-backup <command> [options]."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from .. import __version__
from .._utils import logger
from ..backup import (
    BackupManager,
    BackupTrigger,
    CleanupManager,
    CleanupTarget,
    RestoreManager,
)
from ..backup.exceptions import DataProtectionError
from ..backup.models import ErrorResult, PruneResult
from ..backup.status import collect_status
from ..config import DataProtectionConfig
from ..hardware import SysfsHardwareDetector, build_monitor_settings, write_monitor_settings
from ..migrations import Direction, MigrationScripts
from ..server import DockerComposeController, ServerControlError
from .config import Settings

EXIT_OK = 0
EXIT_FAILURE = 1

console = Console()
err_console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eventstore-backup",
        description="Backup, restore and maintenance for the EventStore data directory",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--env-file", default=None, help="Environment file to load settings from")

    sub = parser.add_subparsers(dest="command", required=True)

    backup = sub.add_parser("backup", help="Create a backup, or list existing ones")
    backup.add_argument("action", nargs="?", choices=["list"], help="List backups instead of creating one")
    backup.add_argument("--version", dest="app_version", default=None, help="Version tag stored next to the archive")
    backup.add_argument("--format", choices=["text", "json"], default="text")

    restore = sub.add_parser("restore", help="Restore the data directory from an archive")
    restore.add_argument("--file", required=True, help="Archive name (backup-YYYYMMDD-HHMMSS.tar.gz)")
    restore.add_argument("--format", choices=["text", "json"], default="text")
    restore.add_argument("--restart", action="store_true", help="Start EventStore afterwards even if it was stopped")

    status = sub.add_parser("status", help="Show server and backup store status")
    status.add_argument("--format", choices=["text", "json"], default="text")

    cleanup = sub.add_parser("cleanup", help="Wipe EventStore data and/or logs")
    cleanup.add_argument("target", nargs="?", choices=[t.value for t in CleanupTarget], default="all")
    cleanup.add_argument("--backup", action="store_true", help="Create a backup before cleaning")
    cleanup.add_argument("--force", action="store_true", help="Skip the confirmation prompt")
    cleanup.add_argument("--restart", action="store_true", help="Start EventStore after cleanup")

    trigger = sub.add_parser("trigger", help="Back up if no archive exists for today")
    trigger.add_argument("--format", choices=["text", "json"], default="text")

    delete = sub.add_parser("delete", help="Delete a backup archive and its version tag")
    delete.add_argument("file", help="Archive name")
    delete.add_argument("--force", action="store_true", help="Skip the confirmation prompt")

    prune = sub.add_parser("prune", help="Delete backups older than the retention window")
    prune.add_argument("--force", action="store_true", help="Skip the confirmation prompt")
    prune.add_argument("--format", choices=["text", "json"], default="text")

    migrate = sub.add_parser("migrate", help="Run a version migration script")
    migrate.add_argument("direction", choices=[d.value for d in Direction])
    migrate.add_argument("target_version", metavar="version")
    migrate.add_argument("--dir", default=None, help="Script directory (defaults to the compose file's directory)")
    migrate.add_argument("--dry-run", action="store_true", help="Only show which script would run")

    perfmon = sub.add_parser("perfmon", help="Detect hardware and write the performance monitor settings")
    perfmon.add_argument("--settings", default=None, help="Runtime settings file to update")
    perfmon.add_argument("--dry-run", action="store_true", help="Print the settings instead of writing them")

    return parser


def configure_logging(maintenance_log: Optional[Path], level: str = "INFO") -> None:
    """Colored status lines on stderr, plus the maintenance log when writable."""
    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = False

    logger.addHandler(RichHandler(console=err_console, show_path=False, markup=False))

    if maintenance_log is not None:
        try:
            maintenance_log.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(maintenance_log)
        except OSError as e:
            logger.debug(f"Maintenance log {maintenance_log} not writable: {e}")
            return
        handler.setFormatter(logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)


def emit_json(payload) -> None:
    """Write exactly one JSON object to stdout."""
    if isinstance(payload, BaseModel):
        text = payload.model_dump_json()
    else:
        text = json.dumps(payload)
    sys.stdout.write(text + "\n")
    sys.stdout.flush()


def _raise_on_sigterm(signum, frame):
    raise SystemExit(128 + signum)


def _confirm(message: str, force: bool) -> bool:
    if force:
        return True
    return Confirm.ask(message, console=err_console, default=False)


def _print_listing(listing) -> None:
    if not listing.backups:
        console.print("No backups found")
        return
    table = Table(title=f"Backups ({listing.total_count}, {listing.total_size})")
    table.add_column("File")
    table.add_column("Version")
    table.add_column("Size", justify="right")
    table.add_column("Created")
    for info in listing.backups:
        table.add_row(info.filename, info.version, info.size, info.created_date)
    console.print(table)


def _print_status(report) -> None:
    table = Table(show_header=False, title="EventStore Backup Status")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in report.model_dump().items():
        table.add_row(key.replace("_", " "), "-" if value is None else str(value))
    console.print(table)


async def run_backup(args, config: DataProtectionConfig, controller) -> int:
    manager = BackupManager(config, controller)

    if args.action == "list":
        listing = await manager.list_backups()
        if args.format == "json":
            emit_json(listing)
        else:
            _print_listing(listing)
        return EXIT_OK

    result = await manager.create_backup(version=args.app_version)
    if args.format == "json":
        emit_json(result)
    elif result.skipped:
        console.print("Fresh installation - nothing to back up")
    else:
        console.print(f"[green]Backup created:[/green] {result.file}")
    return EXIT_OK


async def run_restore(args, config: DataProtectionConfig, controller) -> int:
    manager = RestoreManager(config, controller, always_restart=args.restart)
    result = await manager.restore_backup(args.file)

    if args.format == "json":
        payload = result.model_dump()
        if not payload["degraded"]:
            payload.pop("degraded")
        emit_json(payload)
    elif result.degraded:
        console.print("[yellow]Restore completed, but EventStore stats endpoint is not responding[/yellow]")
    else:
        console.print(f"[green]Restore completed from[/green] {Path(args.file).name}")
    return EXIT_OK


async def run_status(args, config: DataProtectionConfig, controller) -> int:
    report = await collect_status(config, controller)
    if args.format == "json":
        emit_json(report)
    else:
        _print_status(report)
    return EXIT_OK


async def run_cleanup(args, config: DataProtectionConfig, controller) -> int:
    target = CleanupTarget(args.target)
    manager = CleanupManager(config, controller)

    for line in manager.summary(target):
        err_console.print(line)
    if not _confirm(f"Clean EventStore {target.value}? This cannot be undone", args.force):
        console.print("Operation cancelled")
        return EXIT_OK

    result = await manager.cleanup(target, backup_first=args.backup, restart=args.restart)
    if result.backup_file:
        console.print(f"Backup created before cleanup: {result.backup_file}")
    console.print(f"[green]Cleanup of {result.target} completed[/green]")
    return EXIT_OK


async def run_trigger(args, config: DataProtectionConfig, controller) -> int:
    result = await BackupTrigger(config, controller).run()
    if args.format == "json":
        emit_json(result)
    else:
        console.print(f"{result.action}: {result.reason}" + (f" ({result.file})" if result.file else ""))
    return EXIT_OK


async def run_delete(args, config: DataProtectionConfig, controller) -> int:
    manager = BackupManager(config)
    if not _confirm(f"Delete backup {args.file}?", args.force):
        console.print("Operation cancelled")
        return EXIT_OK
    if not await manager.delete_backup(args.file):
        logger.error(f"Backup not found: {args.file}")
        return EXIT_FAILURE
    console.print(f"Deleted {args.file}")
    return EXIT_OK


async def run_prune(args, config: DataProtectionConfig, controller) -> int:
    manager = BackupManager(config)
    retention_days = config.retention.retention_days
    expired = await manager.expired_backups()

    if not expired:
        logger.info(f"No backups older than {retention_days} days")
        result = PruneResult(retention_days=retention_days)
    else:
        err_console.print(f"Backups older than {retention_days} days:")
        for path in expired:
            err_console.print(f"  {path.name}", highlight=False)
        if _confirm(f"Delete {len(expired)} old backup(s)?", args.force):
            result = await manager.prune_backups()
        else:
            err_console.print("Operation cancelled")
            result = PruneResult(retention_days=retention_days)

    if args.format == "json":
        emit_json(result)
    else:
        console.print(f"Deleted {len(result.deleted)} old backup(s)")
    return EXIT_OK


async def run_migrate(args, config: DataProtectionConfig, controller) -> int:
    directory = Path(args.dir) if args.dir else config.paths.compose_file.parent
    result = await MigrationScripts(directory).run(args.target_version, Direction(args.direction), dry_run=args.dry_run)
    return EXIT_OK if result.success else EXIT_FAILURE


async def run_perfmon(args, config: DataProtectionConfig, controller) -> int:
    facts = await asyncio.to_thread(SysfsHardwareDetector().detect)
    settings = build_monitor_settings(facts)

    if args.dry_run:
        emit_json({"MonitorSettings": settings.to_document()})
        return EXIT_OK

    path = Path(args.settings) if args.settings else config.paths.runtime_settings
    write_monitor_settings(path, settings)
    console.print(f"[green]Performance monitor configured in[/green] {path}")
    return EXIT_OK


COMMANDS = {
    "backup": run_backup,
    "restore": run_restore,
    "status": run_status,
    "cleanup": run_cleanup,
    "trigger": run_trigger,
    "delete": run_delete,
    "prune": run_prune,
    "migrate": run_migrate,
    "perfmon": run_perfmon,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = Settings(_env_file=args.env_file) if args.env_file else Settings()
    config = settings.to_config()
    configure_logging(config.paths.maintenance_log, "DEBUG" if args.verbose else settings.log_level.upper())

    signal.signal(signal.SIGTERM, _raise_on_sigterm)

    controller = DockerComposeController(config.paths.compose_file, config.server)
    json_output = getattr(args, "format", "text") == "json"

    try:
        return asyncio.run(COMMANDS[args.command](args, config, controller))
    except (DataProtectionError, ServerControlError, OSError) as e:
        if json_output:
            emit_json(ErrorResult(error=str(e)))
        else:
            err_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        logger.debug("Command failed", exc_info=True)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        err_console.print("[red]Interrupted[/red]")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())

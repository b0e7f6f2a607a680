import logging
from datetime import datetime
from pathlib import Path

logger = logging.getLogger("eventstore-backup")

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def timestamp_now() -> str:
    """Local timestamp used in archive, snapshot and temp directory names."""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def format_size(size_bytes: int) -> str:
    """Human-readable size with integer division, e.g. 1536 -> '1 KB'."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 ** 2:
        return f"{size_bytes // 1024} KB"
    if size_bytes < 1024 ** 3:
        return f"{size_bytes // 1024 ** 2} MB"
    return f"{size_bytes // 1024 ** 3} GB"


def directory_size(directory: Path) -> int:
    """Total size of all regular files below directory (0 if missing)."""
    if not directory.is_dir():
        return 0
    return sum(p.stat().st_size for p in directory.rglob("*") if p.is_file())


def count_files(directory: Path) -> int:
    if not directory.is_dir():
        return 0
    return sum(1 for p in directory.rglob("*") if p.is_file())


def has_entries(directory: Path) -> bool:
    """True when directory exists and contains at least one entry (hidden included)."""
    if not directory.is_dir():
        return False
    return any(directory.iterdir())

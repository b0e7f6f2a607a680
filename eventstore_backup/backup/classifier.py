"""File-role detection for the EventStore data directory."""

from enum import Enum
from fnmatch import fnmatch
from pathlib import Path
from typing import Dict, List

CHECKPOINT_PATTERN = "*.chk"
CHUNK_PATTERN = "*.0*"
INDEX_DIR_NAME = "index"


class FileRole(str, Enum):
    CHECKPOINT = "checkpoint"
    CHUNK = "chunk"
    INDEX = "index"
    OTHER = "other"


def classify(path: Path) -> FileRole:
    """Map a top-level data directory entry to its database role."""
    name = path.name
    if path.is_dir():
        return FileRole.INDEX if name == INDEX_DIR_NAME else FileRole.OTHER
    if fnmatch(name, CHECKPOINT_PATTERN):
        return FileRole.CHECKPOINT
    if fnmatch(name, CHUNK_PATTERN):
        return FileRole.CHUNK
    return FileRole.OTHER


def group_entries(data_dir: Path) -> Dict[FileRole, List[Path]]:
    """Top-level entries of data_dir grouped by role, each group sorted by name."""
    groups: Dict[FileRole, List[Path]] = {role: [] for role in FileRole}
    if not data_dir.is_dir():
        return groups
    for entry in sorted(data_dir.iterdir()):
        groups[classify(entry)].append(entry)
    return groups


def _index_has_files(index_dir: Path) -> bool:
    return any(p.is_file() for p in index_dir.rglob("*"))


def has_database_artifacts(data_dir: Path) -> bool:
    """At least one checkpoint, chunk or index entry is present."""
    groups = group_entries(data_dir)
    return bool(groups[FileRole.CHECKPOINT] or groups[FileRole.CHUNK] or groups[FileRole.INDEX])


def is_fresh_install(data_dir: Path) -> bool:
    """True when data_dir holds no recoverable database state.

    Fresh means the directory is missing, empty, or has no checkpoint, chunk
    or index entries. An index directory without any file beneath it does
    not count as state.
    """
    if not data_dir.is_dir():
        return True

    groups = group_entries(data_dir)
    if groups[FileRole.CHECKPOINT] or groups[FileRole.CHUNK]:
        return False
    return not any(_index_has_files(index_dir) for index_dir in groups[FileRole.INDEX])

"""Utility functions for backup/restore operations."""

import asyncio
import hashlib
import os
import re
import tarfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from .._utils import logger, timestamp_now, TIMESTAMP_FORMAT
from .exceptions import InvalidArchiveNameError, StepFailedError

ARCHIVE_PREFIX = "backup-"
ARCHIVE_SUFFIX = ".tar.gz"
ARCHIVE_GLOB = "backup-*.tar.gz"
ARCHIVE_NAME_RE = re.compile(r"^backup-[0-9]{8}-[0-9]{6}\.tar\.gz$")
VERSION_SUFFIX = ".version"


def generate_archive_name(timestamp: Optional[str] = None) -> str:
    """Archive file name in format: backup-YYYYMMDD-HHMMSS.tar.gz"""
    return f"{ARCHIVE_PREFIX}{timestamp or timestamp_now()}{ARCHIVE_SUFFIX}"


def is_archive_name(name: str) -> bool:
    return ARCHIVE_NAME_RE.match(name) is not None


def validate_archive_name(name: str) -> str:
    """Return name unchanged if it is a well-formed archive name, raise otherwise."""
    if not is_archive_name(name):
        raise InvalidArchiveNameError(name)
    return name


def archive_stem(name: str) -> str:
    """Top-level directory inside the archive: the name without .tar.gz"""
    return name[: -len(ARCHIVE_SUFFIX)] if name.endswith(ARCHIVE_SUFFIX) else name


def archive_timestamp(name: str) -> Optional[datetime]:
    """Timestamp embedded in an archive name, None if the name is not well-formed."""
    if not is_archive_name(name):
        return None
    return datetime.strptime(archive_stem(name)[len(ARCHIVE_PREFIX):], TIMESTAMP_FORMAT)


def version_file_for(archive_path: Path) -> Path:
    return archive_path.with_name(archive_path.name + VERSION_SUFFIX)


def _write_tar(source_dir: Path, output_path: Path) -> None:
    with tarfile.open(output_path, "w:gz") as tar:
        tar.add(source_dir, arcname=source_dir.name)


async def create_archive(source_dir: Path, output_path: Path) -> int:
    """Create tar.gz archive with source_dir as its single top-level directory.

    The archive is written to a hidden temporary file next to output_path and
    renamed into place, so output_path never exists half-written.

    Args:
        source_dir: Staging directory to archive
        output_path: Final archive path

    Returns:
        Size of created archive in bytes
    """
    temp_path = output_path.with_name(f".{output_path.name}.tmp")
    logger.info(f"Creating compressed backup (temporary file): {temp_path.name}")

    try:
        await asyncio.to_thread(_write_tar, source_dir, temp_path)
        if not temp_path.is_file() or temp_path.stat().st_size == 0:
            raise StepFailedError("compress", RuntimeError("compressed backup file is missing or empty"))

        logger.info("Moving backup to final location...")
        os.replace(temp_path, output_path)
    except StepFailedError:
        raise
    except (OSError, tarfile.TarError) as e:
        raise StepFailedError("compress", e) from e
    finally:
        if temp_path.exists():
            temp_path.unlink()

    archive_size = output_path.stat().st_size
    if archive_size == 0:
        raise StepFailedError("compress", RuntimeError("final backup file is empty"))

    logger.info(f"Archive created: {output_path.name} ({archive_size:,} bytes)")
    return archive_size


def _safe_extract(archive_path: Path, output_dir: Path) -> None:
    root = output_dir.resolve()
    with tarfile.open(archive_path, "r:gz") as tar:
        for member in tar.getmembers():
            target = (root / member.name).resolve()
            if target != root and root not in target.parents:
                raise tarfile.TarError(f"refusing to extract member outside target: {member.name}")
            if member.issym() or member.islnk():
                raise tarfile.TarError(f"refusing to extract link member: {member.name}")
        if hasattr(tarfile, "data_filter"):
            tar.extractall(root, filter="data")
        else:
            tar.extractall(root)


async def extract_archive(archive_path: Path, output_dir: Path) -> None:
    """Extract tar.gz archive to directory.

    Args:
        archive_path: Path to backup archive
        output_dir: Directory to extract to
    """
    logger.info(f"Extracting archive: {archive_path.name} to {output_dir}")

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(_safe_extract, archive_path, output_dir)
    except (OSError, tarfile.TarError, EOFError) as e:
        raise StepFailedError("extract", e) from e

    logger.info("Archive extracted successfully")


def compute_checksum(file_path: Path) -> str:
    """Compute SHA-256 checksum of file.

    Returns:
        SHA-256 checksum as hex string with 'sha256:' prefix
    """
    sha256 = hashlib.sha256()

    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)

    return f"sha256:{sha256.hexdigest()}"

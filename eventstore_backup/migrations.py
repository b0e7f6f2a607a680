"""Lookup and invocation of version migration scripts.

Migration scripts live next to the compose manifest as ``up-<version>.sh``
and ``down-<version>.sh``. The autoupdater decides which transitions to run;
this module only finds the scripts and executes one of them.
"""

import asyncio
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from ._utils import logger
from .backup.exceptions import MigrationScriptNotFoundError

SCRIPT_RE = re.compile(r"^(up|down)-(\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.\-+]+)?)(\.sh)?$")


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


def parse_version(version: str) -> Tuple:
    """Sort key for semantic versions; pre-releases sort before the release."""
    core, _, pre = version.partition("-")
    core = core.split("+", 1)[0]
    major, minor, patch = (int(part) for part in core.split("."))
    return (major, minor, patch, 0 if pre else 1, pre)


def compare_versions(a: str, b: str) -> int:
    """-1, 0 or 1 like a classic cmp()."""
    key_a, key_b = parse_version(a), parse_version(b)
    return (key_a > key_b) - (key_a < key_b)


@dataclass(frozen=True)
class MigrationScriptPair:
    version: str
    up: Optional[Path] = None
    down: Optional[Path] = None

    def script(self, direction: Direction) -> Optional[Path]:
        return self.up if direction == Direction.UP else self.down


class MigrationResult(BaseModel):
    version: str
    direction: str
    script: str
    returncode: int
    success: bool
    dry_run: bool = False


class MigrationScripts:
    """Migration scripts found in one directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def discover(self) -> Dict[str, MigrationScriptPair]:
        found: Dict[str, Dict[str, Path]] = {}
        if not self.directory.is_dir():
            return {}
        for path in sorted(self.directory.iterdir()):
            match = SCRIPT_RE.match(path.name)
            if not match or not path.is_file():
                continue
            direction, version, _ = match.groups()
            found.setdefault(version, {})[direction] = path
        return {
            version: MigrationScriptPair(version=version, up=scripts.get("up"), down=scripts.get("down"))
            for version, scripts in found.items()
        }

    def versions(self) -> List[str]:
        return sorted(self.discover(), key=parse_version)

    def find(self, version: str) -> MigrationScriptPair:
        pair = self.discover().get(version)
        if pair is None:
            raise MigrationScriptNotFoundError("up/down", version, self.directory)
        return pair

    def pending(self, current: Optional[str], target: str) -> List[str]:
        """Versions with scripts in (current, target], ascending."""
        return [
            v for v in self.versions()
            if (current is None or compare_versions(v, current) > 0) and compare_versions(v, target) <= 0
        ]

    async def run(self, version: str, direction: Direction, dry_run: bool = False) -> MigrationResult:
        """Execute one migration script with the manifest directory as cwd."""
        direction = Direction(direction)
        script = self.discover().get(version, MigrationScriptPair(version)).script(direction)
        if script is None:
            raise MigrationScriptNotFoundError(direction.value, version, self.directory)

        if dry_run:
            logger.info(f"Would run {direction.value} migration {version}: {script.name}")
            return MigrationResult(
                version=version, direction=direction.value, script=str(script),
                returncode=0, success=True, dry_run=True,
            )

        cmd = ["bash", str(script)] if script.suffix == ".sh" else [str(script)]
        logger.info(f"Running {direction.value} migration {version}: {script.name}")
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(self.directory),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        output, _ = await process.communicate()
        for line in output.decode(errors="replace").splitlines():
            logger.info(f"  {line}")

        success = process.returncode == 0
        if success:
            logger.info(f"Migration {direction.value}-{version} completed")
        else:
            logger.error(f"Migration {direction.value}-{version} failed with exit code {process.returncode}")

        return MigrationResult(
            version=version, direction=direction.value, script=str(script),
            returncode=process.returncode, success=success,
        )

"""Tests for migration script lookup and execution."""

import pytest

from eventstore_backup.backup.exceptions import MigrationScriptNotFoundError
from eventstore_backup.migrations import (
    Direction,
    MigrationScripts,
    compare_versions,
    parse_version,
)


@pytest.fixture
def scripts_dir(tmp_path):
    (tmp_path / "up-1.0.0.sh").write_text("echo upgraded to 1.0.0 > marker.txt\n")
    (tmp_path / "down-1.0.0.sh").write_text("echo downgraded > marker.txt\n")
    (tmp_path / "up-1.2.0.sh").write_text("exit 3\n")
    (tmp_path / "up-1.10.0.sh").write_text("true\n")
    (tmp_path / "docker-compose.yml").write_text("services: {}\n")
    return tmp_path


def test_compare_versions():
    assert compare_versions("1.10.0", "1.2.0") == 1
    assert compare_versions("1.0.0", "1.0.0") == 0
    assert compare_versions("1.0.0-rc.1", "1.0.0") == -1
    assert parse_version("2.3.4") > parse_version("2.3.3")


def test_discover(scripts_dir):
    scripts = MigrationScripts(scripts_dir)

    pairs = scripts.discover()
    assert set(pairs) == {"1.0.0", "1.2.0", "1.10.0"}
    assert pairs["1.0.0"].up.name == "up-1.0.0.sh"
    assert pairs["1.0.0"].down.name == "down-1.0.0.sh"
    assert pairs["1.2.0"].down is None
    assert scripts.versions() == ["1.0.0", "1.2.0", "1.10.0"]


def test_pending(scripts_dir):
    scripts = MigrationScripts(scripts_dir)
    assert scripts.pending("1.0.0", "1.10.0") == ["1.2.0", "1.10.0"]
    assert scripts.pending(None, "1.2.0") == ["1.0.0", "1.2.0"]


def test_find_missing(scripts_dir):
    with pytest.raises(MigrationScriptNotFoundError):
        MigrationScripts(scripts_dir).find("9.9.9")


def test_missing_directory(tmp_path):
    assert MigrationScripts(tmp_path / "missing").discover() == {}


@pytest.mark.asyncio
async def test_run_up_in_script_directory(scripts_dir):
    result = await MigrationScripts(scripts_dir).run("1.0.0", Direction.UP)

    assert result.success is True
    assert result.returncode == 0
    assert (scripts_dir / "marker.txt").read_text().strip() == "upgraded to 1.0.0"


@pytest.mark.asyncio
async def test_run_failure_reports_exit_code(scripts_dir):
    result = await MigrationScripts(scripts_dir).run("1.2.0", "up")

    assert result.success is False
    assert result.returncode == 3


@pytest.mark.asyncio
async def test_run_missing_direction(scripts_dir):
    with pytest.raises(MigrationScriptNotFoundError, match="down-1.2.0"):
        await MigrationScripts(scripts_dir).run("1.2.0", Direction.DOWN)


@pytest.mark.asyncio
async def test_dry_run_does_not_execute(scripts_dir):
    result = await MigrationScripts(scripts_dir).run("1.0.0", Direction.DOWN, dry_run=True)

    assert result.dry_run is True
    assert result.script.endswith("down-1.0.0.sh")
    assert not (scripts_dir / "marker.txt").exists()

"""Tests for the daily backup trigger."""

import pytest
from datetime import datetime
from unittest.mock import patch

from eventstore_backup.backup.trigger import BackupTrigger


@pytest.mark.asyncio
async def test_skips_when_server_stopped(config, data_dir, make_controller):
    result = await BackupTrigger(config, make_controller(running=False)).run()

    assert result.action == "skipped"
    assert result.reason == "server_unavailable"


@pytest.mark.asyncio
async def test_skips_when_server_unhealthy(config, data_dir, make_controller):
    result = await BackupTrigger(config, make_controller(healthy=False)).run()
    assert result.reason == "server_unavailable"


@pytest.mark.asyncio
async def test_skips_when_backup_running(config, data_dir, controller):
    config.paths.lock_file.write_text("4242\n")

    with patch("eventstore_backup.backup.lock.psutil.pid_exists", return_value=True):
        result = await BackupTrigger(config, controller).run()

    assert result.reason == "backup_running"


@pytest.mark.asyncio
async def test_skips_when_today_exists(config, data_dir, controller):
    config.paths.backup_dir.mkdir(parents=True)
    (config.paths.backup_dir / "backup-20240105-010203.tar.gz").write_bytes(b"x")

    result = await BackupTrigger(config, controller).run(today="20240105")

    assert result.action == "skipped"
    assert result.reason == "backup_exists"


@pytest.mark.asyncio
async def test_backs_up_when_missing(config, data_dir, controller):
    config.paths.backup_dir.mkdir(parents=True)
    (config.paths.backup_dir / "backup-20240104-010203.tar.gz").write_bytes(b"x")

    result = await BackupTrigger(config, controller).run(today=datetime.now().strftime("%Y%m%d"))

    assert result.action == "backed_up"
    assert result.reason == "no_backup_today"
    assert result.file
    # Backing up does not stop the server by default
    assert controller.calls == []


@pytest.mark.asyncio
async def test_fresh_install(config, controller):
    result = await BackupTrigger(config, controller).run(today="20240105")

    assert result.action == "skipped"
    assert result.reason == "fresh_install"
    assert result.file is None

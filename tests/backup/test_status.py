"""Tests for the status report."""

import pytest

from eventstore_backup.backup.status import collect_status, server_state


@pytest.mark.asyncio
async def test_server_state(make_controller):
    assert await server_state(make_controller()) == "running_healthy"
    assert await server_state(make_controller(healthy=False)) == "running_unhealthy"
    assert await server_state(make_controller(running=False)) == "stopped"


@pytest.mark.asyncio
async def test_collect_status(config, data_dir, controller):
    backup_dir = config.paths.backup_dir
    backup_dir.mkdir(parents=True)
    (backup_dir / "backup-20240101-120000.tar.gz").write_bytes(b"a" * 1024)
    (backup_dir / "backup-20240102-120000.tar.gz").write_bytes(b"b" * 1024)

    report = await collect_status(config, controller)

    assert report.server_state == "running_healthy"
    assert report.backup_dir_exists is True
    assert report.backup_count == 2
    assert report.total_backup_size == "2 KB"
    assert report.total_backup_size_bytes == 2048
    assert report.oldest_backup is not None
    assert report.newest_backup is not None
    assert report.data_dir == str(data_dir)
    assert report.retention_days == 7
    assert report.backups_to_prune == 0


@pytest.mark.asyncio
async def test_collect_status_empty(config, make_controller):
    report = await collect_status(config, make_controller(running=False))

    assert report.server_state == "stopped"
    assert report.backup_dir_exists is False
    assert report.backup_count == 0
    assert report.oldest_backup is None
    assert report.data_size == "0 B"

"""Shared fixtures for eventstore-backup tests."""

import pytest
from pathlib import Path
from typing import List

from eventstore_backup.config import (
    DataProtectionConfig,
    PathsConfig,
    RetentionConfig,
    ServerConfig,
)
from eventstore_backup.server import ServerController, ServerControlError


class FakeServerController(ServerController):
    """In-memory server that records every lifecycle call."""

    def __init__(
        self,
        running: bool = True,
        healthy: bool = True,
        stats: bool = True,
        stops_gracefully: bool = True,
        fail_start: bool = False,
    ):
        self.running = running
        self.is_healthy = healthy
        self.stats = stats
        self.stops_gracefully = stops_gracefully
        self.fail_start = fail_start
        self.calls: List[str] = []

    async def is_running(self) -> bool:
        return self.running

    async def request_stop(self) -> None:
        self.calls.append("stop")
        if self.stops_gracefully:
            self.running = False

    async def kill(self) -> None:
        self.calls.append("kill")
        self.running = False

    async def start(self) -> None:
        self.calls.append("start")
        if self.fail_start:
            raise ServerControlError("Failed to start EventStore: no such service")
        self.running = True

    async def healthy(self) -> bool:
        return self.running and self.is_healthy

    async def stats_reachable(self) -> bool:
        return self.running and self.stats


def populate_data_dir(data_dir: Path) -> Path:
    """Lay out a small but realistic EventStore data directory."""
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "chaser.chk").write_bytes(b"\x10\x00\x00\x00\x00\x00\x00\x00")
    (data_dir / "writer.chk").write_bytes(b"\x20\x00\x00\x00\x00\x00\x00\x00")
    (data_dir / "epoch.chk").write_bytes(b"\x00" * 8)
    (data_dir / "chunk-000000.000000").write_bytes(b"chunk-data" * 100)
    (data_dir / "chunk-000001.000000").write_bytes(b"more-chunk-data" * 50)

    index_dir = data_dir / "index"
    (index_dir / "stream-existence").mkdir(parents=True)
    (index_dir / "indexcheckpoint.chk").write_bytes(b"\x01" * 8)
    (index_dir / "indexmap").write_text("indexmap-contents")
    (index_dir / "stream-existence" / "streamExistenceFilter.chk").write_bytes(b"\x02" * 8)
    (index_dir / "stream-existence" / "streamExistenceFilter.dat").write_bytes(b"filter")
    return data_dir


@pytest.fixture
def config(tmp_path):
    """Configuration pointing every path into a temporary directory."""
    return DataProtectionConfig(
        paths=PathsConfig(
            data_dir=tmp_path / "eventstore" / "data",
            logs_dir=tmp_path / "eventstore" / "logs",
            backup_dir=tmp_path / "backups",
            lock_file=tmp_path / "eventstore-backup.lock",
            compose_file=tmp_path / "compose" / "docker-compose.yml",
            runtime_settings=tmp_path / "app" / "appsettings.runtime.json",
            maintenance_log=None,
        ),
        server=ServerConfig(
            stop_timeout=0.2,
            stop_poll_interval=0.05,
            health_timeout=0.2,
            health_interval=0.05,
        ),
        retention=RetentionConfig(retention_days=7, rollback_max_age_hours=24),
    )


@pytest.fixture
def data_dir(config):
    """Populated EventStore data directory."""
    return populate_data_dir(config.paths.data_dir)


@pytest.fixture
def controller():
    return FakeServerController()


@pytest.fixture
def make_controller():
    """Factory for controllers in a specific state."""
    return FakeServerController

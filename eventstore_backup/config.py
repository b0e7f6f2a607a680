"""Configuration management for eventstore-backup."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class PathsConfig:
    """Filesystem locations used by backup, restore and cleanup."""
    data_dir: Path = Path("/var/docker/data/eventstore/data")
    logs_dir: Path = Path("/var/docker/data/eventstore/logs")
    backup_dir: Path = Path("/var/docker/data/backups")
    lock_file: Path = Path("/tmp/eventstore-backup.lock")
    compose_file: Path = Path("/var/docker/configuration/rocket-welder/docker-compose.yml")
    runtime_settings: Path = Path("/var/docker/data/app/appsettings.runtime.json")
    maintenance_log: Optional[Path] = Path("/var/docker/data/maintenance.log")

    @classmethod
    def from_env(cls) -> 'PathsConfig':
        """Create config from environment variables."""
        maintenance_log = os.getenv("MAINTENANCE_LOG_FILE", "/var/docker/data/maintenance.log")
        return cls(
            data_dir=Path(os.getenv("EVENTSTORE_DATA_DIR", "/var/docker/data/eventstore/data")),
            logs_dir=Path(os.getenv("EVENTSTORE_LOGS_DIR", "/var/docker/data/eventstore/logs")),
            backup_dir=Path(os.getenv("BACKUP_DIR", "/var/docker/data/backups")),
            lock_file=Path(os.getenv("BACKUP_LOCK_FILE", "/tmp/eventstore-backup.lock")),
            compose_file=Path(os.getenv(
                "COMPOSE_FILE", "/var/docker/configuration/rocket-welder/docker-compose.yml"
            )),
            runtime_settings=Path(os.getenv(
                "RUNTIME_SETTINGS_FILE", "/var/docker/data/app/appsettings.runtime.json"
            )),
            maintenance_log=Path(maintenance_log) if maintenance_log else None,
        )

    @property
    def snapshot_parent(self) -> Path:
        """Directory that holds data.bak.<timestamp> rollback snapshots."""
        return self.data_dir.parent


@dataclass(frozen=True)
class ServerConfig:
    """Database server control and health probing."""
    service_name: str = "eventstore.db"
    health_url: str = "http://localhost:2113/health/live"
    stats_url: str = "http://localhost:2113/stats"
    stop_timeout: float = 30.0
    stop_poll_interval: float = 1.0
    health_timeout: float = 60.0
    health_interval: float = 2.0
    request_timeout: float = 5.0
    owner_uid: Optional[int] = None
    owner_gid: Optional[int] = None

    @classmethod
    def from_env(cls) -> 'ServerConfig':
        """Create config from environment variables."""
        return cls(
            service_name=os.getenv("EVENTSTORE_SERVICE", "eventstore.db"),
            health_url=os.getenv("EVENTSTORE_HEALTH_URL", "http://localhost:2113/health/live"),
            stats_url=os.getenv("EVENTSTORE_STATS_URL", "http://localhost:2113/stats"),
            stop_timeout=float(os.getenv("EVENTSTORE_STOP_TIMEOUT", "30.0")),
            stop_poll_interval=float(os.getenv("EVENTSTORE_STOP_POLL_INTERVAL", "1.0")),
            health_timeout=float(os.getenv("EVENTSTORE_HEALTH_TIMEOUT", "60.0")),
            health_interval=float(os.getenv("EVENTSTORE_HEALTH_INTERVAL", "2.0")),
            request_timeout=float(os.getenv("EVENTSTORE_REQUEST_TIMEOUT", "5.0")),
            owner_uid=_optional_int(os.getenv("EVENTSTORE_OWNER_UID")),
            owner_gid=_optional_int(os.getenv("EVENTSTORE_OWNER_GID")),
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.stop_timeout <= 0:
            raise ValueError(f"stop_timeout must be positive, got {self.stop_timeout}")
        if self.health_timeout <= 0:
            raise ValueError(f"health_timeout must be positive, got {self.health_timeout}")
        if self.health_interval <= 0:
            raise ValueError(f"health_interval must be positive, got {self.health_interval}")
        if self.stop_poll_interval <= 0:
            raise ValueError(f"stop_poll_interval must be positive, got {self.stop_poll_interval}")


@dataclass(frozen=True)
class RetentionConfig:
    """How long archives and rollback snapshots are kept."""
    retention_days: int = 7
    rollback_max_age_hours: int = 24

    @classmethod
    def from_env(cls) -> 'RetentionConfig':
        """Create config from environment variables."""
        return cls(
            retention_days=int(os.getenv("BACKUP_RETENTION_DAYS", "7")),
            rollback_max_age_hours=int(os.getenv("ROLLBACK_MAX_AGE_HOURS", "24")),
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.retention_days < 0:
            raise ValueError(f"retention_days must be non-negative, got {self.retention_days}")
        if self.rollback_max_age_hours < 0:
            raise ValueError(
                f"rollback_max_age_hours must be non-negative, got {self.rollback_max_age_hours}"
            )


@dataclass(frozen=True)
class DataProtectionConfig:
    """Aggregate configuration injected into every manager."""
    paths: PathsConfig = field(default_factory=PathsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    stop_server_during_backup: bool = False

    @classmethod
    def from_env(cls) -> 'DataProtectionConfig':
        """Create complete config from environment variables."""
        return cls(
            paths=PathsConfig.from_env(),
            server=ServerConfig.from_env(),
            retention=RetentionConfig.from_env(),
            stop_server_during_backup=os.getenv("STOP_SERVER_DURING_BACKUP", "false").lower() == "true",
        )

"""Settings for the command line interface."""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..config import DataProtectionConfig, PathsConfig, RetentionConfig, ServerConfig


class Settings(BaseSettings):
    # Paths
    eventstore_data_dir: str = "/var/docker/data/eventstore/data"
    eventstore_logs_dir: str = "/var/docker/data/eventstore/logs"
    backup_dir: str = "/var/docker/data/backups"
    backup_lock_file: str = "/tmp/eventstore-backup.lock"
    compose_file: str = "/var/docker/configuration/rocket-welder/docker-compose.yml"
    runtime_settings_file: str = "/var/docker/data/app/appsettings.runtime.json"
    maintenance_log_file: Optional[str] = "/var/docker/data/maintenance.log"

    # Server
    eventstore_service: str = "eventstore.db"
    eventstore_health_url: str = "http://localhost:2113/health/live"
    eventstore_stats_url: str = "http://localhost:2113/stats"
    eventstore_stop_timeout: float = 30.0
    eventstore_health_timeout: float = 60.0
    eventstore_health_interval: float = 2.0
    eventstore_owner_uid: Optional[int] = None
    eventstore_owner_gid: Optional[int] = None

    # Retention
    backup_retention_days: int = Field(default=7, ge=0)
    rollback_max_age_hours: int = Field(default=24, ge=0)

    # Behaviour
    stop_server_during_backup: bool = False
    log_level: str = Field(default="INFO", description="Level for console and maintenance log output")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("maintenance_log_file", "eventstore_owner_uid", "eventstore_owner_gid", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    def to_config(self) -> DataProtectionConfig:
        return DataProtectionConfig(
            paths=PathsConfig(
                data_dir=Path(self.eventstore_data_dir),
                logs_dir=Path(self.eventstore_logs_dir),
                backup_dir=Path(self.backup_dir),
                lock_file=Path(self.backup_lock_file),
                compose_file=Path(self.compose_file),
                runtime_settings=Path(self.runtime_settings_file),
                maintenance_log=Path(self.maintenance_log_file) if self.maintenance_log_file else None,
            ),
            server=ServerConfig(
                service_name=self.eventstore_service,
                health_url=self.eventstore_health_url,
                stats_url=self.eventstore_stats_url,
                stop_timeout=self.eventstore_stop_timeout,
                health_timeout=self.eventstore_health_timeout,
                health_interval=self.eventstore_health_interval,
                owner_uid=self.eventstore_owner_uid,
                owner_gid=self.eventstore_owner_gid,
            ),
            retention=RetentionConfig(
                retention_days=self.backup_retention_days,
                rollback_max_age_hours=self.rollback_max_age_hours,
            ),
            stop_server_during_backup=self.stop_server_during_backup,
        )

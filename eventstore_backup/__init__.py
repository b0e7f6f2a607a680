from .config import DataProtectionConfig, PathsConfig, ServerConfig, RetentionConfig

__author__ = "eventstore-backup contributors"
__version__ = "1.0.0"

__all__ = [
    "DataProtectionConfig",
    "PathsConfig",
    "ServerConfig",
    "RetentionConfig",
]

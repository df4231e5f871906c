from .models import (
    AppConfig,
    EmailConfig,
    PreviewConfig,
    ServerConfig,
    SessionConfig,
    StorageConfig,
    load_config,
)

__all__ = [
    "AppConfig",
    "EmailConfig",
    "PreviewConfig",
    "ServerConfig",
    "SessionConfig",
    "StorageConfig",
    "load_config",
]

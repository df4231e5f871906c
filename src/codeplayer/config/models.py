"""
Pydantic configuration models with YAML loading and environment overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from codeplayer.core.errors import ConfigError

DEFAULT_DB_URL = "sqlite:///data/codeplayer.db"
CONFIG_ENV = "CODEPLAYER_CONFIG"


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)
    log_level: str = "INFO"


class PreviewConfig(BaseModel):
    # All delays are in seconds.
    render_delay: float = Field(default=0.0, ge=0)
    run_start_delay: float = Field(default=0.01, ge=0)
    settle_delay: float = Field(default=0.1, ge=0)
    not_ready_delay: float = Field(default=0.05, ge=0)
    error_delay: float = Field(default=0.1, ge=0)
    max_render_attempts: int = Field(default=20, gt=0)


class SessionConfig(BaseModel):
    ttl_minutes: int = Field(default=30, gt=0)
    sweep_interval_seconds: float = Field(default=60.0, gt=0)


class StorageConfig(BaseModel):
    db_url: str = DEFAULT_DB_URL
    slug_length: int = Field(default=7, ge=4)
    slug_max_retries: int = Field(default=10, gt=0)
    slug_max_length: int = Field(default=12, ge=4)


class EmailConfig(BaseModel):
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    sender: str = "noreply@codeplayer.local"
    use_tls: bool = True
    timeout: float = 10.0


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    preview: PreviewConfig = Field(default_factory=PreviewConfig)
    sessions: SessionConfig = Field(default_factory=SessionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    raw: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AppConfig":
        file_path = Path(path).expanduser()
        if not file_path.exists():
            raise ConfigError(message=f"Config file not found: {file_path}")
        data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ConfigError(message=f"Config file must contain a mapping: {file_path}")
        try:
            return cls(**data, raw=data)
        except PydanticValidationError as e:
            raise ConfigError(message=f"Invalid config {file_path}: {e}") from e


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    env = os.environ
    if env.get("CODEPLAYER_DB_URL"):
        config.storage.db_url = env["CODEPLAYER_DB_URL"]
    if env.get("CODEPLAYER_SMTP_HOST"):
        config.email.smtp_host = env["CODEPLAYER_SMTP_HOST"]
    if env.get("CODEPLAYER_SMTP_PORT"):
        try:
            config.email.smtp_port = int(env["CODEPLAYER_SMTP_PORT"])
        except ValueError as e:
            raise ConfigError(message=f"CODEPLAYER_SMTP_PORT is not a number: {env['CODEPLAYER_SMTP_PORT']}") from e
    if env.get("CODEPLAYER_SMTP_USER"):
        config.email.username = env["CODEPLAYER_SMTP_USER"]
    if env.get("CODEPLAYER_SMTP_PASSWORD"):
        config.email.password = env["CODEPLAYER_SMTP_PASSWORD"]
    if env.get("CODEPLAYER_MAIL_FROM"):
        config.email.sender = env["CODEPLAYER_MAIL_FROM"]
    return config


def load_config(path: str | Path | None = None) -> AppConfig:
    """
    Load configuration.

    Order: explicit path, then ``CODEPLAYER_CONFIG``, then built-in defaults;
    environment overrides are applied last.
    """
    path = path or os.getenv(CONFIG_ENV)
    config = AppConfig.from_yaml(path) if path else AppConfig()
    return _apply_env_overrides(config)

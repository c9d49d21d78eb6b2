"""Configuração do rolehop, lida de variáveis de ambiente (e de um .env opcional)."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError

_config_logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


class PathsSettings(BaseModel):
    credentials_file: str = Field(default_factory=lambda: str(Path.home() / ".aws" / "credentials"))
    cache_file: str = Field(default_factory=lambda: str(Path.home() / ".aws" / "profile_cache.json"))


class CredentialSettings(BaseModel):
    cache_margin_seconds: int = Field(default=45 * 60, ge=0, le=12 * 3600)
    default_duration_seconds: int = Field(default=3600, ge=900, le=43200)
    session_name_prefix: str = Field(default="rolehop_assumerole", min_length=2, max_length=40)
    region: str = Field(default=DEFAULT_REGION)


class ProvisionSettings(BaseModel):
    terraform_bin: str = Field(default="terraform")
    render_path: str = Field(default="./render")
    clean_before_render: bool = Field(default=True)


class LoggingSettings(BaseModel):
    level: str = Field(default="WARNING", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class Settings(BaseModel):
    paths: PathsSettings = Field(default_factory=PathsSettings)
    credentials: CredentialSettings = Field(default_factory=CredentialSettings)
    provision: ProvisionSettings = Field(default_factory=ProvisionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_KEYS = {
    "credentials_file": "ROLEHOP_CREDENTIALS_FILE",
    "cache_file": "ROLEHOP_CACHE_FILE",
    "cache_margin_seconds": "ROLEHOP_CACHE_MARGIN_SECONDS",
    "default_duration_seconds": "ROLEHOP_DEFAULT_DURATION_SECONDS",
    "session_name_prefix": "ROLEHOP_SESSION_PREFIX",
    "terraform_bin": "ROLEHOP_TERRAFORM_BIN",
    "render_path": "ROLEHOP_RENDER_PATH",
    "clean_before_render": "ROLEHOP_CLEAN_BEFORE_RENDER",
    "log_level": "ROLEHOP_LOG_LEVEL",
    "log_file": "ROLEHOP_LOG_FILE",
}

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_path(key: str, default: str) -> str:
    value = os.getenv(key)
    if not value:
        return default
    return str(Path(value).expanduser())


def load_settings() -> Settings:
    """Carrega a configuração uma vez por processo."""

    return _load_settings_cached()


def reset_settings() -> None:
    _load_settings_cached.cache_clear()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=Path.cwd() / ".env")

    settings_data: dict[str, object] = {
        "paths": {
            "credentials_file": _env_path(
                ENV_KEYS["credentials_file"], PathsSettings().credentials_file
            ),
            "cache_file": _env_path(ENV_KEYS["cache_file"], PathsSettings().cache_file),
        },
        "credentials": {
            "cache_margin_seconds": _env_int(
                ENV_KEYS["cache_margin_seconds"],
                CredentialSettings().cache_margin_seconds,
            ),
            "default_duration_seconds": _env_int(
                ENV_KEYS["default_duration_seconds"],
                CredentialSettings().default_duration_seconds,
            ),
            "session_name_prefix": os.getenv(
                ENV_KEYS["session_name_prefix"], CredentialSettings().session_name_prefix
            ),
            "region": (
                os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or DEFAULT_REGION
            ),
        },
        "provision": {
            "terraform_bin": os.getenv(ENV_KEYS["terraform_bin"], ProvisionSettings().terraform_bin),
            "render_path": os.getenv(ENV_KEYS["render_path"], ProvisionSettings().render_path),
            "clean_before_render": _env_bool(
                ENV_KEYS["clean_before_render"], ProvisionSettings().clean_before_render
            ),
        },
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _env_path(ENV_KEYS["log_file"], "") or None,
        },
    }

    try:
        return Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

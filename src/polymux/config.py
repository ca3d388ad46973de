"""Polymux config loading from polymux.yml plus env overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.polygon.io"
DEFAULT_S3_ENDPOINT = "https://files.polygon.io"
DEFAULT_ENVIRONMENT = "development"
ENV_PREFIX = "POLYMUX_"
CONFIG_PATH_ENV = "POLYMUX_CONFIG_PATH"
ENVIRONMENT_ENV = "POLYMUX_ENV"
DEFAULT_CONFIG_PATHS = (Path("config") / "polymux.yml", Path("polymux.yml"))


class Config(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None
    s3_endpoint: str = DEFAULT_S3_ENDPOINT
    timeout_seconds: float = 30.0

    @field_validator("base_url", "s3_endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        cleaned = value.strip().rstrip("/")
        if not cleaned:
            raise ValueError("endpoint URL must not be empty")
        return cleaned

    @field_validator("timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be positive")
        return value

    @property
    def has_s3_credentials(self) -> bool:
        return bool(self.s3_access_key_id) and bool(self.s3_secret_access_key)


CONFIG_FIELDS: tuple[str, ...] = tuple(Config.model_fields)


def _as_non_empty_string(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _config_path() -> Path | None:
    explicit = _as_non_empty_string(os.environ.get(CONFIG_PATH_ENV))
    if explicit:
        return Path(explicit).expanduser()
    for candidate in DEFAULT_CONFIG_PATHS:
        if candidate.exists():
            return candidate
    return None


def _read_polymux_yaml(path: Path | None) -> dict[str, Any]:
    if path is None or not path.exists():
        return {}

    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("config_file_unreadable path=%s error=%s", path, exc)
        return {}

    if isinstance(loaded, dict):
        return loaded
    return {}


def _extract_environment(data: dict[str, Any], environment: str) -> dict[str, Any]:
    section = data.get(environment)
    if isinstance(section, dict):
        source = section
    elif any(key in data for key in CONFIG_FIELDS):
        # Flat file with no per-environment sections.
        source = data
    else:
        source = {}
    return {key: value for key, value in source.items() if key in CONFIG_FIELDS and value is not None}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    result = dict(data)
    for field in CONFIG_FIELDS:
        raw = os.environ.get(f"{ENV_PREFIX}{field.upper()}")
        if raw is None or not raw.strip():
            continue
        result[field] = raw.strip()
    return result


def load_config(**overrides: Any) -> Config:
    """Resolve config: explicit overrides > POLYMUX_* env > polymux.yml > defaults."""
    environment = _as_non_empty_string(os.environ.get(ENVIRONMENT_ENV)) or DEFAULT_ENVIRONMENT
    from_file = _extract_environment(_read_polymux_yaml(_config_path()), environment)
    merged = _apply_env_overrides(from_file)
    merged.update({key: value for key, value in overrides.items() if value is not None})
    return Config.model_validate(merged)

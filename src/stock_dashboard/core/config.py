"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from pathlib import Path
from typing import get_args

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from stock_dashboard.core.exceptions import ConfigError

# Sample datasets shipped inside the package
PACKAGED_SAMPLE_DIR = str(Path(__file__).resolve().parent.parent / "data")


class ProvidersConfig(BaseModel):
    """Upstream price provider access configuration."""

    model_config = ConfigDict(frozen=True)

    yahoo_base_url: str = "https://query2.finance.yahoo.com"
    stooq_base_url: str = "https://stooq.com"
    stooq_suffix: str = ".us"
    timeout: float = 15.0
    user_agent: str = "Mozilla/5.0 (compatible; stock-dashboard/0.1)"

    @field_validator("timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be > 0")
        return v

    @field_validator("yahoo_base_url", "stooq_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base URL must be http(s), got: {v!r}")
        return v.rstrip("/")


class StorageConfig(BaseModel):
    """Price cache configuration."""

    model_config = ConfigDict(frozen=True)

    sqlite_path: str = "./data/stocks.sqlite"


class SamplesConfig(BaseModel):
    """Static sample dataset configuration."""

    model_config = ConfigDict(frozen=True)

    sample_dir: str = PACKAGED_SAMPLE_DIR
    default_symbol: str = "AAPL"

    @field_validator("default_symbol")
    @classmethod
    def symbol_upper(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("default_symbol must not be empty")
        return v.strip().upper()


class APIConfig(BaseModel):
    """FastAPI server configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 4000
    cors_origin: str | None = None
    client_dist: str = "./client/dist"


class DashboardConfig(BaseModel):
    """Root configuration for the entire stock-dashboard service."""

    model_config = ConfigDict(frozen=True)

    providers: ProvidersConfig = ProvidersConfig()
    storage: StorageConfig = StorageConfig()
    samples: SamplesConfig = SamplesConfig()
    api: APIConfig = APIConfig()


def load_config(
    config_path: str | None = None,
    env_prefix: str = "STOCK_DASHBOARD_",
) -> DashboardConfig:
    """Load configuration from environment + YAML file + defaults.

    Resolution order (highest priority first):
    1. Environment variables (STOCK_DASHBOARD_API__PORT, etc.)
    2. YAML file at config_path
    3. Built-in defaults

    Nested keys use double-underscore in env vars:
        STOCK_DASHBOARD_PROVIDERS__TIMEOUT=5  ->  providers.timeout = 5
    """
    try:
        yaml_path = _resolve_config_path(config_path)
        base: dict = {}
        if yaml_path is not None:
            base = _load_yaml(yaml_path)

        merged = _merge_env_vars(base, env_prefix)
        return DashboardConfig.model_validate(merged)
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(str(e), context={"source": "load_config"}) from e


def _resolve_config_path(explicit: str | None) -> Path | None:
    """Determine config file path."""
    if explicit is not None:
        p = Path(explicit)
        if not p.exists():
            raise ConfigError(
                f"Config file not found: {explicit}",
                context={"field": "config_path", "value": explicit},
            )
        return p

    env_path = os.environ.get("STOCK_DASHBOARD_CONFIG")
    if env_path:
        p = Path(env_path)
        if not p.exists():
            raise ConfigError(
                f"Config file from STOCK_DASHBOARD_CONFIG not found: {env_path}",
                context={"field": "STOCK_DASHBOARD_CONFIG", "value": env_path},
            )
        return p

    default = Path("stock-dashboard.yml")
    if default.exists():
        return default

    return None


def _load_yaml(path: Path) -> dict:
    """Load and parse YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"YAML config must be a mapping, got {type(data).__name__}",
                context={"field": "config_file", "value": str(path)},
            )
        return data
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse YAML config: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Overlay environment variables onto base config dict.

    Double-underscore separates nesting levels.
    Values are auto-cast: "true"/"false" -> bool, numeric strings -> int/float,
    except for string-typed fields, which keep the raw value.
    """
    result = dict(base)

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        parts = [p.lower() for p in remainder.split("__")]

        # The config path itself is not a setting
        if parts == ["config"]:
            continue

        target = result
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = value if _is_str_field(parts) else _auto_cast(value)

    return result


def _is_str_field(parts: list[str]) -> bool:
    """Whether the dotted config path names a ``str`` (or ``str | None``) field."""
    model: type[BaseModel] = DashboardConfig
    for part in parts[:-1]:
        field = model.model_fields.get(part)
        if field is None or not (
            isinstance(field.annotation, type) and issubclass(field.annotation, BaseModel)
        ):
            return False
        model = field.annotation

    field = model.model_fields.get(parts[-1])
    if field is None:
        return False
    return field.annotation is str or str in get_args(field.annotation)


def _auto_cast(value: str) -> str | int | float | bool:
    """Auto-cast string values from environment variables."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value

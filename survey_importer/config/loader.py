from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_API_URL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_ROW_DELAY,
    ApiConfig,
    ImportConfig,
)

"""Config loader.

Responsibilities:
- Load the optional YAML file (config/import.yml by default)
- Validate it against the bundled JSON schema
- Overlay environment variables (ZENLOOP_API_URL / ZENLOOP_API_USER / ZENLOOP_API_PASSWORD)
- Apply defaults for everything left unset
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ENV_API_URL",
    "ENV_API_USER",
    "ENV_API_PASSWORD",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")

ENV_API_URL = "ZENLOOP_API_URL"
ENV_API_USER = "ZENLOOP_API_USER"
ENV_API_PASSWORD = "ZENLOOP_API_PASSWORD"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / unreadable, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return data


def load_config(
    path: Path | None = None,
    *,
    required: bool = False,
    environ: Mapping[str, str] | None = None,
) -> ImportConfig:
    """Build the ImportConfig.

    Parameters:
        path: YAML file. Defaults to config/import.yml
        required: raise when the file does not exist (explicit --config)
        environ: environment mapping, os.environ when omitted

    Raises:
        ConfigError: missing required file, invalid YAML, schema violation
    """
    env = os.environ if environ is None else environ
    cfg_path = path if path is not None else DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if cfg_path.exists():
        data = _read_yaml(cfg_path)
        _validate_config_schema(data)
    elif required:
        raise ConfigError(f"config file not found: {cfg_path}")

    # env > yaml > default
    base_url = env.get(ENV_API_URL) or data.get("api_url") or DEFAULT_API_URL
    api = ApiConfig(
        base_url=base_url.rstrip("/"),
        user=env.get(ENV_API_USER, ""),
        password=env.get(ENV_API_PASSWORD, ""),
        timeout_seconds=float(data.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT)),
    )
    return ImportConfig(
        api=api,
        row_delay_seconds=float(data.get("row_delay_seconds", DEFAULT_ROW_DELAY)),
        error_log_dir=data.get("error_log_dir", "./logs"),
    )

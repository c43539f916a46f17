from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.aggregation import TotalsMode
from ..models.config_models import AnalysisConfig

"""Config loader.

Responsibilities:
- Load YAML (config/analysis.yml by default, DATASPHERE_CONFIG overrides)
- Validate against the packaged JSON schema (unknown keys rejected)
- Apply defaults for every missing key
"""

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ConfigError",
    "default_config",
    "load_config",
    "resolve_config_path",
]

CONFIG_ENV_VAR = "DATASPHERE_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/analysis.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the data violates it
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


def default_config() -> AnalysisConfig:
    return AnalysisConfig()


def resolve_config_path(explicit: str | Path | None = None) -> Path | None:
    """Pick the config file: explicit argument, then env var, then default path.

    The default path is optional (None when absent); explicit and env paths are
    returned as-is so that a typo surfaces as "config file not found".
    """
    if explicit:
        return Path(explicit)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


def load_config(path: Path) -> AnalysisConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    defaults = default_config()
    low, high = data.get("date_year_bounds", defaults.date_year_bounds)
    if low >= high:
        raise ConfigError(f"config validation failed: date_year_bounds must be ascending: {[low, high]}")
    return AnalysisConfig(
        numeric_threshold=float(data.get("numeric_threshold", defaults.numeric_threshold)),
        date_year_bounds=(int(low), int(high)),
        totals_mode=TotalsMode(data.get("totals_mode", defaults.totals_mode.value)),
        placeholder=data.get("placeholder", defaults.placeholder),
        keep_na_strings=tuple(data.get("keep_na_strings") or ()),
        null_sentinels=frozenset(s.strip().upper() for s in data.get("null_sentinels") or ()),
        default_sheet=data.get("default_sheet"),
    )

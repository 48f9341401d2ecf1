from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Configuration loader.

Responsibilities:
- Load an optional YAML config file
- Validate it against the bundled JSON schema
- Apply defaults for every key that is not set (no config file = all defaults)
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"

DEFAULT_ERROR_CODES_SHEET = "Lista Erros Sefaz"
DEFAULT_REJECTIONS_SHEET = "Base Consolidado"
DEFAULT_CORRECTIONS_SHEET = "Listagem de Eventos"
DEFAULT_CHUNK_SIZE = 500
DEFAULT_REJECTIONS_MONTHS = 4
DEFAULT_CORRECTIONS_MONTHS = 3
DEFAULT_EXPORT_DIRECTORY = "."
DEFAULT_EXPORT_PREFIX = "Relatorio_Dashboard"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class SheetNames:
    error_codes: str = DEFAULT_ERROR_CODES_SHEET
    rejections: str = DEFAULT_REJECTIONS_SHEET
    corrections: str = DEFAULT_CORRECTIONS_SHEET


@dataclass(frozen=True)
class FilterDefaults:
    """Width of the default date window shown for each dashboard."""
    rejections_months: int = DEFAULT_REJECTIONS_MONTHS
    corrections_months: int = DEFAULT_CORRECTIONS_MONTHS


@dataclass(frozen=True)
class ExportConfig:
    directory: str = DEFAULT_EXPORT_DIRECTORY
    file_prefix: str = DEFAULT_EXPORT_PREFIX


@dataclass(frozen=True)
class AppConfig:
    sheets: SheetNames = field(default_factory=SheetNames)
    chunk_size: int = DEFAULT_CHUNK_SIZE
    filters: FilterDefaults = field(default_factory=FilterDefaults)
    export: ExportConfig = field(default_factory=ExportConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the data
            violates it (unknown keys, wrong types, out-of-range values).
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


def config_from_dict(data: dict[str, Any]) -> AppConfig:
    _validate_config_schema(data)
    sheets = data.get("sheets", {})
    filters = data.get("filters", {})
    export = data.get("export", {})
    return AppConfig(
        sheets=SheetNames(
            error_codes=sheets.get("error_codes", DEFAULT_ERROR_CODES_SHEET),
            rejections=sheets.get("rejections", DEFAULT_REJECTIONS_SHEET),
            corrections=sheets.get("corrections", DEFAULT_CORRECTIONS_SHEET),
        ),
        chunk_size=data.get("chunk_size", DEFAULT_CHUNK_SIZE),
        filters=FilterDefaults(
            rejections_months=filters.get("rejections_months", DEFAULT_REJECTIONS_MONTHS),
            corrections_months=filters.get("corrections_months", DEFAULT_CORRECTIONS_MONTHS),
        ),
        export=ExportConfig(
            directory=export.get("directory", DEFAULT_EXPORT_DIRECTORY),
            file_prefix=export.get("file_prefix", DEFAULT_EXPORT_PREFIX),
        ),
    )


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file, or return defaults when path is None."""
    if path is None:
        return AppConfig()
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return config_from_dict(data)

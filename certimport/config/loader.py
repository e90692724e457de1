from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load the YAML config (default config/import.yml)
- Validate it against the bundled JSON schema (config_schema.json)
- Apply defaults for every optional section
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")

DEFAULT_CHUNK_SIZE = 500
DEFAULT_DOCUMENT_TYPE = "CC"
DEFAULT_STATUS = "Activo"


class ConfigError(Exception):
    pass


class InvalidRowPolicy(Enum):
    """What the import does when at least one row has a blocking error.

    - ABORT: commit nothing, not even the valid rows
    - SKIP_INVALID: commit the valid rows, report the invalid ones
    """
    ABORT = "abort"
    SKIP_INVALID = "skip_invalid"


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection fallback. Environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class StorageConfig:
    employees_table: str = "empleados"
    history_table: str = "certificaciones_historico"
    company_configs_table: str = "company_certificate_configs"
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class CommitDefaults:
    """Values filled in at commit time for absent fields."""
    document_type: str = DEFAULT_DOCUMENT_TYPE
    status: str = DEFAULT_STATUS


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    defaults: CommitDefaults = field(default_factory=CommitDefaults)
    on_invalid_rows: InvalidRowPolicy = InvalidRowPolicy.ABORT
    column_aliases: dict[str, list[str]] = field(default_factory=dict)  # extra headers per field


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or not JSON, or the data violates it
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


def parse_config(data: dict[str, Any]) -> AppConfig:
    """Build AppConfig from already-loaded mapping data."""
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    storage_raw = data.get("storage") or {}
    storage = StorageConfig(
        employees_table=storage_raw.get("employees_table", "empleados"),
        history_table=storage_raw.get("history_table", "certificaciones_historico"),
        company_configs_table=storage_raw.get("company_configs_table", "company_certificate_configs"),
        chunk_size=storage_raw.get("chunk_size", DEFAULT_CHUNK_SIZE),
    )
    defaults_raw = data.get("defaults") or {}
    defaults = CommitDefaults(
        document_type=defaults_raw.get("document_type", DEFAULT_DOCUMENT_TYPE),
        status=defaults_raw.get("status", DEFAULT_STATUS),
    )
    return AppConfig(
        database=db,
        storage=storage,
        defaults=defaults,
        on_invalid_rows=InvalidRowPolicy(data.get("on_invalid_rows", "abort")),
        column_aliases={k: list(v) for k, v in (data.get("column_aliases") or {}).items()},
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    return parse_config(data)

"""
Configuration loading.

Settings come from an optional JSON file; the storage locations can also be
overridden from the environment (``UMS_DATABASE_PATH``, ``UMS_DATA_DIR``).
"""

import json
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .core.exceptions import ConfigurationError


class UmsConfig(BaseModel):
    persistence_enabled: bool = True
    relational_enabled: bool = True
    database_type: str = Field("sqlite", pattern=r'^(sqlite|postgresql|postgres)$')
    database_config: Dict[str, Any] = Field(default_factory=lambda: {"database_path": "ums.db"})
    flat_file_enabled: bool = True
    flat_file_dir: str = Field("ums_data", min_length=1)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value}")
        return value


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> UmsConfig:
    """Load configuration from a JSON file and environment overrides."""
    environ = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}
    if path:
        try:
            with open(path, 'r', encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a JSON object")

    if environ.get("UMS_DATABASE_PATH") and raw.get("database_type", "sqlite") == "sqlite":
        database_config = dict(raw.get("database_config") or {})
        database_config["database_path"] = environ["UMS_DATABASE_PATH"]
        raw["database_config"] = database_config
    if environ.get("UMS_DATA_DIR"):
        raw["flat_file_dir"] = environ["UMS_DATA_DIR"]

    try:
        return UmsConfig(**raw)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

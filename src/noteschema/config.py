"""Configuration management for noteschema.

Runtime settings come from the environment (`NOTESCHEMA_*`); schema
definitions come from a YAML or JSON file inside the vault's state directory.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from noteschema.errors import SchemaConfigError
from noteschema.schema.loader import SchemaSet, load_schema_set

STATE_DIR_NAME = ".noteschema"
DEFAULT_SCHEMA_FILE = "schemas.yaml"


class NoteSchemaConfig(BaseSettings):
    """Runtime settings, overridable with NOTESCHEMA_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="NOTESCHEMA_", extra="ignore")

    vault_path: Path = Field(default_factory=Path.cwd, description="Root folder of the notes")
    state_dir: Path | None = Field(
        None, description="Index, cache and schema file location (default <vault>/.noteschema)"
    )
    config_file: Path | None = Field(
        None, description="Schema definitions file (default <state_dir>/schemas.yaml)"
    )
    warn_on_unknown_fields: bool = True
    allow_native_properties: bool = True
    index_debounce_seconds: float = Field(1.0, ge=0)
    cache_debounce_seconds: float = Field(2.0, ge=0)
    batch_size: int = Field(50, ge=1)
    log_level: str = "INFO"

    @property
    def state_path(self) -> Path:
        return self.state_dir or self.vault_path / STATE_DIR_NAME

    @property
    def schema_path(self) -> Path:
        return self.config_file or self.state_path / DEFAULT_SCHEMA_FILE


def parse_schema_text(text: str, suffix: str = ".yaml") -> dict[str, Any]:
    """Parse schema definitions as JSON or YAML depending on the file suffix."""
    try:
        data = json.loads(text) if suffix.lower() == ".json" else yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise SchemaConfigError(f"Could not parse schema file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SchemaConfigError("Schema file must contain a mapping at the top level")
    return data


class ConfigManager:
    """Loads settings and the schema definitions file."""

    def __init__(self, config: NoteSchemaConfig | None = None):
        self.config = config or NoteSchemaConfig()

    def load_schemas(self) -> SchemaSet:
        """Read and resolve the schema file. A missing file yields an empty set.

        Raises:
            SchemaConfigError: If the file is unparseable or its definitions are invalid.
        """
        path = self.config.schema_path
        if not path.exists():
            logger.info(f"No schema file at {path}")
            return SchemaSet()

        text = path.read_text(encoding="utf-8")
        schema_set = load_schema_set(parse_schema_text(text, path.suffix))
        logger.info(f"Loaded {len(schema_set)} schemas from {path}")
        return schema_set

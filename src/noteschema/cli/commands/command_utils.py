"""utility functions for commands"""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import typer
from rich.console import Console

from noteschema.cache import ValidationCache, hash_settings
from noteschema.config import ConfigManager, NoteSchemaConfig
from noteschema.documents import FileBlobStore, FileSystemDocumentStore
from noteschema.engine import ValidationEngine
from noteschema.errors import NoteSchemaError
from noteschema.query.tag_index import TagIndex

console = Console()

T = TypeVar("T")


def run_with_cleanup(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


def get_config(ctx: typer.Context) -> NoteSchemaConfig:
    """Settings resolved by the app callback, or defaults when invoked directly."""
    config = ctx.obj if ctx is not None else None
    if isinstance(config, NoteSchemaConfig):
        return config
    return NoteSchemaConfig()


def build_engine(config: NoteSchemaConfig, use_cache: bool = True) -> ValidationEngine:
    """Wire the filesystem stores, tag index and cache into a validation engine.

    Raises:
        NoteSchemaError: If the vault folder does not exist.
        SchemaConfigError: If the schema file is invalid.
    """
    if not config.vault_path.is_dir():
        raise NoteSchemaError(f"Vault folder not found: {config.vault_path}")

    schema_set = ConfigManager(config).load_schemas()
    store = FileSystemDocumentStore(config.vault_path)
    blobs = FileBlobStore(config.state_path)
    tag_index = TagIndex(store, blobs, debounce_seconds=config.index_debounce_seconds)

    cache = None
    if use_cache:
        cache = ValidationCache(
            blobs,
            hash_settings(config.warn_on_unknown_fields, config.allow_native_properties),
            debounce_seconds=config.cache_debounce_seconds,
        )

    return ValidationEngine(
        store,
        tag_index,
        schema_set,
        cache=cache,
        check_unknown_fields=config.warn_on_unknown_fields,
        allow_native_properties=config.allow_native_properties,
        batch_size=config.batch_size,
    )

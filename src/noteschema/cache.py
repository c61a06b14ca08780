"""Persistent validation cache.

Lets a restart skip unchanged notes. Blob layout (`validation-cache.json`):

  {
    "version": 1,
    "settings_hash": "...",
    "schema_hashes": {"books": "..."},
    "documents": {"Library/Dune.md": {"mtime": 1718000000.0,
                                      "schema_ids": ["books"],
                                      "violations": [...]}}
  }

Invalidation on analyze():
  - settings hash changed         -> full revalidation, cache emptied
  - schema hash changed / deleted -> that schema, plus every document that matched it
  - document mtime changed or new -> that document
  - document gone                 -> entry dropped
"""

import hashlib
import json
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

from loguru import logger

from noteschema.debounce import DebouncedWriter
from noteschema.documents import BlobStore, Document
from noteschema.errors import DocumentError
from noteschema.schema.loader import SchemaSet
from noteschema.schema.model import NamedType, SchemaMapping
from noteschema.schema.registry import TypeRegistry
from noteschema.schema.violations import Violation

CACHE_VERSION = 1
CACHE_BLOB = "validation-cache.json"


# --- Hashing ---


def fingerprint(data: Any) -> str:
    """Stable SHA-256 digest of JSON-serializable data."""
    encoded = json.dumps(data, sort_keys=True, default=str).encode()
    return hashlib.sha256(encoded).hexdigest()[:16]


def _named_type_payload(named_type: NamedType) -> dict:
    return {"name": named_type.name, "fields": [asdict(f) for f in named_type.fields]}


def hash_schema(schema: SchemaMapping, registry: TypeRegistry) -> str:
    """Hash of everything that affects a schema's results, including referenced types."""
    return fingerprint(
        {
            "id": schema.id,
            "query": schema.query,
            "enabled": schema.enabled,
            "fields": [asdict(f) for f in schema.fields],
            "property_filter": asdict(schema.property_filter) if schema.property_filter else None,
            "types": [_named_type_payload(t) for t in registry.referenced_types(schema.fields)],
        }
    )


def hash_settings(check_unknown_fields: bool, allow_native_properties: bool) -> str:
    return fingerprint(
        {
            "check_unknown_fields": check_unknown_fields,
            "allow_native_properties": allow_native_properties,
        }
    )


# --- Data Model ---


@dataclass
class CachedDocument:
    mtime: float
    schema_ids: list[str] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mtime": self.mtime,
            "schema_ids": list(self.schema_ids),
            "violations": [v.to_dict() for v in self.violations],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CachedDocument":
        return cls(
            mtime=float(data["mtime"]),
            schema_ids=[str(s) for s in data.get("schema_ids", [])],
            violations=[Violation.from_dict(v) for v in data.get("violations", [])],
        )


@dataclass
class CacheAnalysis:
    documents_to_revalidate: set[str] = field(default_factory=set)
    schemas_to_revalidate: set[str] = field(default_factory=set)
    removed_documents: set[str] = field(default_factory=set)
    full_revalidation_needed: bool = False


# --- Cache ---


class ValidationCache:
    """Per-document validation results keyed by path, persisted with debouncing."""

    def __init__(
        self,
        blobs: BlobStore,
        settings_hash: str,
        debounce_seconds: float = 2.0,
        blob_name: str = CACHE_BLOB,
    ):
        self.blobs = blobs
        self.settings_hash = settings_hash
        self.blob_name = blob_name
        self._stored_settings_hash: str | None = None
        self.schema_hashes: dict[str, str] = {}
        self.documents: dict[str, CachedDocument] = {}
        self._writer = DebouncedWriter(self.save, debounce_seconds, name="validation cache")

    # --- Persistence ---

    async def load(self) -> bool:
        """Load the persisted cache. Returns False (and starts empty) when unusable."""
        try:
            raw = await self.blobs.read(self.blob_name)
        except FileNotFoundError:
            logger.debug("No validation cache found")
            return False
        except (OSError, DocumentError) as e:
            logger.warning(f"Could not read validation cache: {e}")
            return False

        try:
            data = json.loads(raw)
            if data.get("version") != CACHE_VERSION:
                logger.info(f"Validation cache version {data.get('version')} is outdated, discarding")
                return False
            documents = {
                str(path): CachedDocument.from_dict(entry)
                for path, entry in data.get("documents", {}).items()
            }
            schema_hashes = {str(k): str(v) for k, v in data.get("schema_hashes", {}).items()}
            stored_settings_hash = data.get("settings_hash")
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Validation cache is corrupt, discarding: {e}")
            return False

        self.documents = documents
        self.schema_hashes = schema_hashes
        self._stored_settings_hash = stored_settings_hash
        logger.debug(f"Loaded validation cache with {len(documents)} documents")
        return True

    async def save(self) -> None:
        payload = json.dumps(
            {
                "version": CACHE_VERSION,
                "settings_hash": self.settings_hash,
                "schema_hashes": self.schema_hashes,
                "documents": {path: entry.to_dict() for path, entry in self.documents.items()},
            }
        )
        try:
            await self.blobs.write(self.blob_name, payload)
        except (OSError, DocumentError) as e:
            self._writer.dirty = True
            logger.error(f"Failed to save validation cache: {e}")

    async def flush(self) -> None:
        await self._writer.flush()

    def _changed(self) -> None:
        self._writer.schedule()

    # --- Analysis ---

    def analyze(self, schema_set: SchemaSet, documents: Iterable[Document]) -> CacheAnalysis:
        """Decide what must be revalidated and drop the stale entries."""
        if self._stored_settings_hash != self.settings_hash:
            logger.debug("Validation settings changed, full revalidation needed")
            self.clear()
            return CacheAnalysis(full_revalidation_needed=True)

        invalid_schemas: set[str] = set()
        current_hashes: dict[str, str] = {}
        for schema in schema_set:
            current = hash_schema(schema, schema_set.registry)
            current_hashes[schema.id] = current
            if self.schema_hashes.get(schema.id) != current:
                logger.debug(f"Schema '{schema.name}' changed, will revalidate")
                invalid_schemas.add(schema.id)

        for cached_id in self.schema_hashes:
            if cached_id not in current_hashes:
                logger.debug(f"Schema '{cached_id}' deleted")
                invalid_schemas.add(cached_id)

        self.schema_hashes = current_hashes

        present = {d.id: d for d in documents}
        to_revalidate: set[str] = set()
        removed: set[str] = set()

        for path in list(self.documents):
            entry = self.documents[path]
            document = present.get(path)
            if document is None:
                removed.add(path)
                del self.documents[path]
            elif document.mtime != entry.mtime or invalid_schemas.intersection(entry.schema_ids):
                to_revalidate.add(path)
                del self.documents[path]

        # Notes created while nothing was watching
        to_revalidate.update(path for path in present if path not in self.documents)

        self._changed()
        return CacheAnalysis(
            documents_to_revalidate=to_revalidate,
            schemas_to_revalidate=invalid_schemas,
            removed_documents=removed,
        )

    # --- Updates ---

    def update_document(
        self,
        document_id: str,
        mtime: float,
        schema_ids: Iterable[str],
        violations: Iterable[Violation],
    ) -> None:
        self.documents[document_id] = CachedDocument(
            mtime=mtime, schema_ids=sorted(set(schema_ids)), violations=list(violations)
        )
        self._changed()

    def add_schema_result(
        self,
        document_id: str,
        mtime: float,
        schema_id: str,
        violations: Iterable[Violation],
    ) -> None:
        """Record one schema's pass over a document, merging with other schemas' ids."""
        entry = self.documents.get(document_id)
        schema_ids = set(entry.schema_ids) if entry and entry.mtime == mtime else set()
        schema_ids.add(schema_id)
        self.update_document(document_id, mtime, schema_ids, violations)

    def update_violations(self, document_id: str, violations: Iterable[Violation]) -> None:
        """Refresh the violations of an existing entry, e.g. after a uniqueness rescan."""
        entry = self.documents.get(document_id)
        if entry is None:
            return
        entry.violations = list(violations)
        self._changed()

    def remove_document(self, document_id: str) -> None:
        if self.documents.pop(document_id, None) is not None:
            self._changed()

    def rename_document(self, old_id: str, new_id: str) -> None:
        entry = self.documents.pop(old_id, None)
        if entry is None:
            return
        entry.violations = [
            Violation.from_dict({**v.to_dict(), "document_id": new_id}) for v in entry.violations
        ]
        self.documents[new_id] = entry
        self._changed()

    def invalidate_schema(self, schema_id: str) -> list[str]:
        """Drop every entry that matched a schema. Returns the dropped paths."""
        invalidated = [path for path, e in self.documents.items() if schema_id in e.schema_ids]
        for path in invalidated:
            del self.documents[path]
        if invalidated:
            self._changed()
        return invalidated

    def update_schema_hash(self, schema: SchemaMapping, registry: TypeRegistry) -> None:
        self.schema_hashes[schema.id] = hash_schema(schema, registry)
        self._changed()

    def clear(self) -> None:
        """Empty the cache, keeping the current settings hash."""
        self.documents = {}
        self.schema_hashes = {}
        self._stored_settings_hash = self.settings_hash
        self._changed()

    # --- Queries ---

    def is_fresh(self, document_id: str, mtime: float) -> bool:
        entry = self.documents.get(document_id)
        return entry is not None and entry.mtime == mtime

    def cached_violations(self) -> list[Violation]:
        return [v for entry in self.documents.values() for v in entry.violations]

    def stats(self) -> dict[str, int]:
        return {
            "documents": len(self.documents),
            "schemas": len(self.schema_hashes),
            "violations": sum(len(e.violations) for e in self.documents.values()),
        }

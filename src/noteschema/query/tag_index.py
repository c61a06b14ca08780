"""Persisted inverted index from tag to documents.

Blob layout (`tags-index.json`):

  {"version": 1, "tags": {"book": ["Library/Dune.md"], "book/fiction": [...]}}

A missing, corrupt or outdated blob triggers a full rebuild from the document
store. A loaded blob is reconciled with the store, since notes may have changed
while no process was watching. Mutations are kept in memory and persisted
through a debounced writer; call `flush()` before shutdown.
"""

import json
import time
from collections.abc import Iterable

from loguru import logger

from noteschema.debounce import DebouncedWriter
from noteschema.documents import BlobStore, Document, DocumentStore
from noteschema.errors import DocumentError

INDEX_VERSION = 1
INDEX_BLOB = "tags-index.json"


class TagIndex:
    """tag -> document ids, with a reverse map for O(tags) updates."""

    def __init__(
        self,
        store: DocumentStore,
        blobs: BlobStore,
        debounce_seconds: float = 1.0,
        blob_name: str = INDEX_BLOB,
    ):
        self.store = store
        self.blobs = blobs
        self.blob_name = blob_name
        self._tags: dict[str, set[str]] = {}
        self._document_tags: dict[str, set[str]] = {}
        self._writer = DebouncedWriter(self.save, debounce_seconds, name="tag index")
        self.initialized = False

    # --- Lifecycle ---

    async def initialize(self) -> None:
        """Load the persisted index and reconcile it, rebuilding it when unusable."""
        if await self.load():
            self.reconcile()
        else:
            await self.rebuild()

    async def load(self) -> bool:
        """Populate from the blob store. Returns False when a rebuild is needed."""
        try:
            raw = await self.blobs.read(self.blob_name)
        except FileNotFoundError:
            logger.debug("No tag index found, rebuilding")
            return False
        except (OSError, DocumentError) as e:
            logger.warning(f"Could not read tag index, rebuilding: {e}")
            return False

        try:
            data = json.loads(raw)
            if data.get("version") != INDEX_VERSION:
                logger.info(f"Tag index version {data.get('version')} is outdated, rebuilding")
                return False
            tags = {str(tag): set(ids) for tag, ids in data["tags"].items()}
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Tag index is corrupt, rebuilding: {e}")
            return False

        self._tags = {tag: ids for tag, ids in tags.items() if ids}
        self._document_tags = {}
        for tag, ids in self._tags.items():
            for document_id in ids:
                self._document_tags.setdefault(document_id, set()).add(tag)

        self.initialized = True
        logger.debug(f"Loaded tag index with {len(self._tags)} tags")
        return True

    async def rebuild(self) -> None:
        """Scan every document and persist the result immediately."""
        start = time.perf_counter()
        self._tags = {}
        self._document_tags = {}

        count = 0
        for document in self.store.list_documents():
            self._index(document.id, document.tags)
            count += 1

        self._writer.dirty = True
        await self.flush()
        self.initialized = True

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"Rebuilt tag index: {len(self._tags)} tags across {count} notes in {elapsed_ms:.0f}ms")

    def reconcile(self) -> int:
        """Re-index notes whose tags differ from the loaded blob and drop notes that are gone.

        Returns the number of notes that changed.
        """
        start = time.perf_counter()
        present: set[str] = set()
        changed = 0
        for document in self.store.list_documents():
            present.add(document.id)
            if set(document.tags) != self._document_tags.get(document.id, set()):
                self.update_document(document)
                changed += 1

        for document_id in list(self._document_tags):
            if document_id not in present:
                self.remove_document(document_id)
                changed += 1

        elapsed_ms = (time.perf_counter() - start) * 1000
        if changed:
            logger.info(f"Reconciled tag index: {changed} notes re-indexed in {elapsed_ms:.0f}ms")
        else:
            logger.debug(f"Tag index up to date ({len(present)} notes checked in {elapsed_ms:.0f}ms)")
        return changed

    async def save(self) -> None:
        payload = json.dumps({"version": INDEX_VERSION, "tags": self.as_dict()}, indent=2)
        try:
            await self.blobs.write(self.blob_name, payload)
        except (OSError, DocumentError) as e:
            # Keep the changes pending for the next flush
            self._writer.dirty = True
            logger.error(f"Failed to save tag index: {e}")
            return
        logger.debug(f"Saved tag index with {len(self._tags)} tags")

    async def flush(self) -> None:
        await self._writer.flush()

    @property
    def dirty(self) -> bool:
        return self._writer.dirty

    # --- Incremental maintenance ---

    def update_document(self, document: Document) -> None:
        """Sync one document's tag memberships with its current tags."""
        new_tags = set(document.tags)
        old_tags = self._document_tags.get(document.id, set())
        if new_tags == old_tags:
            return

        for tag in old_tags - new_tags:
            self._discard(tag, document.id)
        self._index(document.id, new_tags - old_tags)
        if not new_tags:
            self._document_tags.pop(document.id, None)

        self._writer.schedule()

    def remove_document(self, document_id: str) -> None:
        old_tags = self._document_tags.pop(document_id, set())
        if not old_tags:
            return
        for tag in old_tags:
            self._discard(tag, document_id)
        self._writer.schedule()

    def rename_document(self, old_id: str, new_id: str) -> None:
        tags = self._document_tags.pop(old_id, set())
        if not tags:
            return
        for tag in tags:
            members = self._tags[tag]
            members.discard(old_id)
            members.add(new_id)
        self._document_tags[new_id] = tags
        self._writer.schedule()

    def _index(self, document_id: str, tags: Iterable[str]) -> None:
        for tag in tags:
            self._tags.setdefault(tag, set()).add(document_id)
            self._document_tags.setdefault(document_id, set()).add(tag)

    def _discard(self, tag: str, document_id: str) -> None:
        members = self._tags.get(tag)
        if members is None:
            return
        members.discard(document_id)
        if not members:
            del self._tags[tag]
        document_tags = self._document_tags.get(document_id)
        if document_tags is not None:
            document_tags.discard(tag)

    # --- Lookup ---

    def documents_with_tag(self, tag: str) -> set[str]:
        """Documents tagged `tag` or any nested `tag/...`."""
        name = tag.strip().lstrip("#")
        prefix = f"{name}/"
        result: set[str] = set()
        for indexed, members in self._tags.items():
            if indexed == name or indexed.startswith(prefix):
                result.update(members)
        return result

    def tags_for(self, document_id: str) -> set[str]:
        return set(self._document_tags.get(document_id, set()))

    def as_dict(self) -> dict[str, list[str]]:
        return {tag: sorted(ids) for tag, ids in sorted(self._tags.items())}

    def stats(self) -> dict[str, int]:
        return {
            "tags": len(self._tags),
            "documents": len(self._document_tags),
            "memberships": sum(len(ids) for ids in self._tags.values()),
        }

"""Validation engine: schemas x documents -> violation store.

  startup()                 -> tag index, cache analysis, minimal revalidation
  validate_all()            -> every enabled schema, batched, cancellable
  validate_schema(schema)   -> one schema over its candidate documents
  on_created / on_changed / on_renamed / on_deleted
                            -> incremental maintenance from change notifications

Uniqueness is corpus-wide: any change touching a schema with unique fields
re-runs a UniquenessTracker over that schema's whole candidate set.
"""

import asyncio
import time

from loguru import logger

from noteschema.cache import ValidationCache
from noteschema.documents import Document, DocumentStore
from noteschema.query.errors import QueryError
from noteschema.query.evaluator import QueryEvaluator
from noteschema.query.tag_index import TagIndex
from noteschema.schema.loader import SchemaSet
from noteschema.schema.model import SchemaMapping
from noteschema.schema.uniqueness import UniquenessTracker
from noteschema.schema.validator import SchemaValidator, filter_native_properties
from noteschema.schema.violations import Violation, ViolationKind
from noteschema.store import ViolationStore


class ValidationEngine:
    """Runs schema validation over a document store and keeps the violation store current."""

    def __init__(
        self,
        store: DocumentStore,
        tag_index: TagIndex,
        schema_set: SchemaSet,
        violations: ViolationStore | None = None,
        cache: ValidationCache | None = None,
        check_unknown_fields: bool = True,
        allow_native_properties: bool = True,
        batch_size: int = 50,
    ):
        self.store = store
        self.tag_index = tag_index
        self.violations = violations or ViolationStore()
        self.cache = cache
        self.check_unknown_fields = check_unknown_fields
        self.allow_native_properties = allow_native_properties
        self.batch_size = batch_size
        self.evaluator = QueryEvaluator(store, tag_index)
        self._lock = asyncio.Lock()
        self.set_schemas(schema_set)

    def set_schemas(self, schema_set: SchemaSet) -> None:
        """Swap in new definitions. Callers follow up with a revalidation."""
        self.schema_set = schema_set
        self.validator = SchemaValidator(schema_set.registry)

    @property
    def schemas(self) -> tuple[SchemaMapping, ...]:
        return self.schema_set.schemas

    # --- Matching ---

    def get_matching_schemas(self, document: Document) -> list[SchemaMapping]:
        matching = []
        for schema in self.schemas:
            try:
                applies = self.evaluator.schema_applies(document, schema)
            except QueryError as e:
                logger.warning(f"Skipping schema '{schema.id}' with invalid query: {e}")
                continue
            if applies:
                matching.append(schema)
        return matching

    def query_files(self, query: str) -> list[str]:
        """Document ids matching a query, sorted.

        Raises:
            QuerySyntaxError: If the query cannot be parsed.
        """
        return self.evaluator.query_files(query)

    def _schema_documents(self, schema: SchemaMapping) -> list[Document]:
        try:
            return self.evaluator.schema_documents(schema)
        except QueryError as e:
            logger.warning(f"Skipping schema '{schema.id}' with invalid query: {e}")
            return []

    # --- Single documents ---

    def check_document(self, document: Document, schema: SchemaMapping) -> list[Violation]:
        """Validate without touching the store."""
        violations = self.validator.validate(
            document.id,
            document.frontmatter,
            schema,
            check_unknown_fields=self.check_unknown_fields,
        )
        if self.allow_native_properties:
            violations = filter_native_properties(violations)
        return violations

    def validate_document(self, document: Document, schema: SchemaMapping) -> list[Violation]:
        """Validate one document against one schema and record the result."""
        violations = self.check_document(document, schema)
        self.violations.set_schema_violations(document.id, schema.id, violations)
        if self.cache is not None:
            self.cache.add_schema_result(
                document.id,
                document.mtime,
                schema.id,
                self.violations.document_violations(document.id),
            )
        return violations

    def validate_document_all_schemas(self, document: Document) -> list[Violation]:
        """Revalidate a document against every schema that currently applies to it."""
        self._validate_all_schemas(document)
        return self.violations.document_violations(document.id)

    def _validate_all_schemas(self, document: Document) -> list[SchemaMapping]:
        matching = self.get_matching_schemas(document)
        matching_ids = {s.id for s in matching}

        with self.violations.batch():
            previous_ids = {v.schema_id for v in self.violations.document_violations(document.id)}
            for schema_id in previous_ids - matching_ids:
                self.violations.remove_document_schema(document.id, schema_id)
            for schema in matching:
                self.violations.set_schema_violations(
                    document.id, schema.id, self.check_document(document, schema)
                )

        if self.cache is not None:
            self.cache.update_document(
                document.id,
                document.mtime,
                matching_ids,
                self.violations.document_violations(document.id),
            )
        return matching

    # --- Uniqueness ---

    def _apply_duplicates(self, schema: SchemaMapping, duplicates: list[Violation]) -> None:
        for violation in duplicates:
            self.violations.replace_field_violations(
                violation.document_id,
                schema.id,
                violation.field_path,
                ViolationKind.DUPLICATE_VALUE,
                [violation],
            )
        if self.cache is not None:
            for document_id in {v.document_id for v in duplicates}:
                self.cache.update_violations(
                    document_id, self.violations.document_violations(document_id)
                )

    def _duplicate_schema_ids(self, document_id: str) -> set[str]:
        return {
            v.schema_id
            for v in self.violations.document_violations(document_id)
            if v.kind is ViolationKind.DUPLICATE_VALUE
        }

    async def rescan_uniqueness(self, schema: SchemaMapping) -> None:
        """Recompute duplicate_value violations for a schema over its whole candidate set."""
        if not schema.has_unique_fields or not schema.enabled:
            return

        start = time.perf_counter()
        documents = self._schema_documents(schema)
        tracker = UniquenessTracker(schema)

        with self.violations.batch():
            stale = {
                v.document_id
                for v in self.violations.schema_violations(schema.id)
                if v.kind is ViolationKind.DUPLICATE_VALUE
            }
            self.violations.remove_kind(schema.id, ViolationKind.DUPLICATE_VALUE)

            for index, document in enumerate(documents):
                if index and index % self.batch_size == 0:
                    await asyncio.sleep(0)
                self._apply_duplicates(schema, tracker.observe(document.id, document.frontmatter))

            if self.cache is not None:
                for document_id in stale:
                    self.cache.update_violations(
                        document_id, self.violations.document_violations(document_id)
                    )

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            f"Uniqueness rescan of '{schema.id}' over {len(documents)} notes in {elapsed_ms:.1f}ms"
        )

    # --- Full passes ---

    async def validate_schema(
        self, schema: SchemaMapping, cancel: asyncio.Event | None = None
    ) -> bool:
        """Validate every candidate document of a schema.

        Work is split into batches with a yield between them. Returns False if
        the pass was cancelled.
        """
        if not schema.enabled:
            return True

        start = time.perf_counter()
        documents = self._schema_documents(schema)
        tracker = UniquenessTracker(schema)

        with self.violations.batch():
            if tracker.active:
                self.violations.remove_kind(schema.id, ViolationKind.DUPLICATE_VALUE)

            for index, document in enumerate(documents):
                if index and index % self.batch_size == 0:
                    await asyncio.sleep(0)
                    if cancel is not None and cancel.is_set():
                        logger.info(f"Validation of '{schema.id}' cancelled after {index} notes")
                        return False

                self.validate_document(document, schema)
                if tracker.active:
                    self._apply_duplicates(
                        schema, tracker.observe(document.id, document.frontmatter)
                    )

        if self.cache is not None:
            self.cache.update_schema_hash(schema, self.schema_set.registry)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"Validated '{schema.id}' against {len(documents)} notes in {elapsed_ms:.1f}ms")
        return True

    async def validate_all(self, cancel: asyncio.Event | None = None) -> bool:
        """Clear the store and validate every enabled schema. Passes are serialized."""
        if not self.tag_index.initialized:
            await self.tag_index.initialize()

        async with self._lock:
            start = time.perf_counter()
            completed = True

            with self.violations.batch():
                self.violations.clear()
                if self.cache is not None:
                    self.cache.clear()

                for schema in self.schemas:
                    if not await self.validate_schema(schema, cancel):
                        completed = False
                        break

                if completed:
                    self.violations.mark_full_validation()
                    self._cache_unmatched()

            counts = self.violations.counts()
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                f"Validated {len(self.schemas)} schemas in {elapsed_ms:.0f}ms: "
                f"{counts.errors} errors, {counts.warnings} warnings in {counts.documents} notes"
            )
            return completed

    def _cache_unmatched(self) -> None:
        # Notes no schema selected get an empty entry too
        if self.cache is None:
            return
        for document in self.store.list_documents():
            if not self.cache.is_fresh(document.id, document.mtime):
                self.cache.update_document(
                    document.id,
                    document.mtime,
                    (),
                    self.violations.document_violations(document.id),
                )

    async def revalidate_schema(self, schema_id: str) -> None:
        """Drop a schema's violations and validate it again, e.g. after it was edited."""
        async with self._lock:
            self.violations.remove_schema(schema_id)
            if self.cache is not None:
                self.cache.invalidate_schema(schema_id)

            schema = self.schema_set.get(schema_id)
            if schema is None:
                logger.debug(f"Schema '{schema_id}' no longer exists; violations removed")
                return
            await self.validate_schema(schema)

    # --- Lifecycle ---

    async def startup(self, cancel: asyncio.Event | None = None) -> None:
        """Bring the tag index and the violation store up to date, reusing the cache."""
        if self.tag_index.initialized:
            self.tag_index.reconcile()
        else:
            await self.tag_index.initialize()

        if self.cache is None:
            await self.validate_all(cancel)
            return

        await self.cache.load()
        analysis = self.cache.analyze(self.schema_set, self.store.list_documents())
        if analysis.full_revalidation_needed:
            await self.validate_all(cancel)
            return

        start = time.perf_counter()
        async with self._lock:
            with self.violations.batch():
                self.violations.clear()
                self.violations.add(self.cache.cached_violations())

                for document_id in analysis.documents_to_revalidate:
                    self.violations.remove_document(document_id)

                for schema_id in sorted(analysis.schemas_to_revalidate):
                    self.violations.remove_schema(schema_id)
                    schema = self.schema_set.get(schema_id)
                    if schema is not None:
                        await self.validate_schema(schema, cancel)

                touched = bool(analysis.documents_to_revalidate or analysis.removed_documents)
                for document_id in sorted(analysis.documents_to_revalidate):
                    document = self.store.get_document(document_id)
                    if document is not None:
                        self._validate_all_schemas(document)

                if touched:
                    for schema in self.schemas:
                        if schema.id not in analysis.schemas_to_revalidate:
                            await self.rescan_uniqueness(schema)

                self.violations.mark_full_validation()

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Startup revalidated {len(analysis.documents_to_revalidate)} notes and "
            f"{len(analysis.schemas_to_revalidate)} schemas in {elapsed_ms:.0f}ms"
        )

    async def shutdown(self) -> None:
        """Persist pending index and cache writes."""
        await self.tag_index.flush()
        if self.cache is not None:
            await self.cache.flush()

    # --- Change notifications ---

    async def on_created(self, document: Document) -> None:
        await self.on_changed(document)

    async def on_changed(self, document: Document) -> None:
        """A document's content changed. The document store must already reflect it."""
        previous_duplicates = self._duplicate_schema_ids(document.id)

        self.tag_index.update_document(document)
        matching_ids = {s.id for s in self._validate_all_schemas(document)}

        for schema in self.schemas:
            if not schema.has_unique_fields:
                continue
            if schema.id in matching_ids or schema.id in previous_duplicates:
                await self.rescan_uniqueness(schema)

    async def on_renamed(self, old_id: str, document: Document) -> None:
        """A document moved to `document.id`. Its folder, and so its schemas, may change."""
        self.tag_index.rename_document(old_id, document.id)
        self.violations.rename_document(old_id, document.id)
        if self.cache is not None:
            self.cache.rename_document(old_id, document.id)
        await self.on_changed(document)

    async def on_deleted(self, document_id: str) -> None:
        previous_duplicates = self._duplicate_schema_ids(document_id)

        self.tag_index.remove_document(document_id)
        self.violations.remove_document(document_id)
        if self.cache is not None:
            self.cache.remove_document(document_id)

        for schema_id in previous_duplicates:
            schema = self.schema_set.get(schema_id)
            if schema is not None:
                await self.rescan_uniqueness(schema)

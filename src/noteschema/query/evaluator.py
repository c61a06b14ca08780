"""Resolves queries and schema mappings to documents.

  parse -> candidates (tag index / folder listing, a superset)
        -> exact segment evaluation per candidate
        -> property filter (schemas only)
"""

from datetime import datetime

from noteschema.documents import Document, DocumentStore
from noteschema.query.ast import (
    AllCondition,
    FolderCondition,
    FolderRecursiveCondition,
    ParsedQuery,
    QueryCondition,
    TagCondition,
)
from noteschema.query.matcher import query_matches
from noteschema.query.parser import parse_query
from noteschema.query.tag_index import TagIndex
from noteschema.schema.model import PropertyFilter, SchemaMapping
from noteschema.schema.operators import evaluate, to_timestamp
from noteschema.utils import LowerKeyMap


class QueryEvaluator:
    """Evaluates queries using the tag index as an accelerator, never as the final answer."""

    def __init__(self, store: DocumentStore, tag_index: TagIndex):
        self.store = store
        self.tag_index = tag_index

    # --- Candidates ---

    def _resolve(self, condition: QueryCondition) -> set[str]:
        if isinstance(condition, AllCondition):
            return {d.id for d in self.store.list_documents()}
        if isinstance(condition, TagCondition):
            return self.tag_index.documents_with_tag(condition.name)
        if isinstance(condition, FolderCondition):
            return {d.id for d in self.store.documents_in_folder(condition.path, recursive=False)}
        if isinstance(condition, FolderRecursiveCondition):
            return {d.id for d in self.store.documents_in_folder(condition.path, recursive=True)}
        raise TypeError(f"Unsupported query condition: {condition!r}")

    def candidates(self, parsed: ParsedQuery) -> set[str]:
        """Superset of matching document ids.

        Every positive term of a segment must hold, so the smallest term set
        already bounds that segment. Segments are unioned.
        """
        result: set[str] = set()
        for segment in parsed.segments:
            smallest: set[str] | None = None
            for condition in segment.and_terms:
                resolved = self._resolve(condition)
                if smallest is None or len(resolved) < len(smallest):
                    smallest = resolved
                if not smallest:
                    break
            result.update(smallest or ())
        return result

    # --- Queries ---

    def query_documents(self, query: str | ParsedQuery) -> list[Document]:
        """Documents matching the query, sorted by id.

        Raises:
            QuerySyntaxError: If the query cannot be parsed.
        """
        parsed = parse_query(query) if isinstance(query, str) else query
        if parsed.is_empty:
            return []

        matched = []
        for document_id in sorted(self.candidates(parsed)):
            document = self.store.get_document(document_id)
            if document is not None and query_matches(parsed, document):
                matched.append(document)
        return matched

    def query_files(self, query: str | ParsedQuery) -> list[str]:
        return [d.id for d in self.query_documents(query)]

    # --- Schemas ---

    def schema_documents(self, schema: SchemaMapping) -> list[Document]:
        """Documents a schema applies to: query match plus property filter."""
        if not schema.enabled or not schema.query.strip():
            return []
        documents = self.query_documents(schema.query)
        if schema.property_filter is None:
            return documents
        return [d for d in documents if matches_property_filter(d, schema.property_filter)]

    def schema_applies(self, document: Document, schema: SchemaMapping) -> bool:
        """Single-document check without touching the index."""
        if not schema.enabled or not schema.query.strip():
            return False
        if not query_matches(schema.query, document):
            return False
        if schema.property_filter is None:
            return True
        return matches_property_filter(document, schema.property_filter)


# --- Property Filters ---


def _within(moment: datetime | None, after: str | None, before: str | None) -> bool:
    if not after and not before:
        return True

    after_ts = to_timestamp(after) if after else None
    before_ts = to_timestamp(before) if before else None
    if after_ts is None and before_ts is None:
        # Unparseable bounds are ignored
        return True
    if moment is None:
        return False

    ts = moment.timestamp()
    if after_ts is not None and ts <= after_ts:
        return False
    if before_ts is not None and ts >= before_ts:
        return False
    return True


def matches_property_filter(document: Document, property_filter: PropertyFilter) -> bool:
    """All parts of the filter must hold."""
    if not _within(document.modified, property_filter.modified_after, property_filter.modified_before):
        return False
    if not _within(document.created, property_filter.created_after, property_filter.created_before):
        return False

    frontmatter = document.frontmatter or {}
    key_map = LowerKeyMap(frontmatter)

    if property_filter.has_property and property_filter.has_property not in key_map:
        return False
    if property_filter.not_has_property and property_filter.not_has_property in key_map:
        return False

    for condition in property_filter.conditions:
        key = key_map.lookup(condition.property)
        if key is None:
            return False
        if not evaluate(frontmatter[key], condition.operator, condition.value):
            return False

    return True

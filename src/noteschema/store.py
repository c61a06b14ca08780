"""Violation store: the sink every validation pass writes into.

Violations are kept per document. Writers replace whole slices:

  set_schema_violations(doc, schema, vs)        (doc, schema), keeps duplicate_value
  replace_field_violations(doc, schema, f, k)   (doc, schema, field, kind)
  remove_document / remove_schema / remove_kind

Listeners are notified after every mutation, except inside a batch, where a
single notification fires when the outermost batch ends.
"""

import time
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from noteschema.schema.violations import Severity, Violation, ViolationKind

Listener = Callable[[], None]


@dataclass(frozen=True)
class ViolationCounts:
    total: int
    documents: int
    errors: int
    warnings: int


class ViolationStore:
    """In-memory violation sink with change notification."""

    def __init__(self):
        self._by_document: dict[str, list[Violation]] = {}
        self._listeners: list[Listener] = []
        self._batch_depth = 0
        self._pending_notify = False
        self.last_full_validation: float | None = None

    # --- Listeners ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if self._batch_depth > 0:
            self._pending_notify = True
            return
        for listener in list(self._listeners):
            listener()

    def begin_batch(self) -> None:
        self._batch_depth += 1

    def end_batch(self) -> None:
        if self._batch_depth == 0:
            return
        self._batch_depth -= 1
        if self._batch_depth == 0 and self._pending_notify:
            self._pending_notify = False
            self._notify()

    @contextmanager
    def batch(self) -> Iterator["ViolationStore"]:
        self.begin_batch()
        try:
            yield self
        finally:
            self.end_batch()

    # --- Mutations ---

    def add(self, violations: Iterable[Violation]) -> None:
        added = False
        for violation in violations:
            self._by_document.setdefault(violation.document_id, []).append(violation)
            added = True
        if added:
            self._notify()

    def set_schema_violations(
        self, document_id: str, schema_id: str, violations: Iterable[Violation]
    ) -> None:
        """Replace a document's violations for one schema.

        duplicate_value violations are owned by uniqueness rescans and survive.
        """
        kept = [
            v
            for v in self._by_document.get(document_id, [])
            if v.schema_id != schema_id or v.kind is ViolationKind.DUPLICATE_VALUE
        ]
        self._store(document_id, kept + list(violations))
        self._notify()

    def replace_field_violations(
        self,
        document_id: str,
        schema_id: str,
        field_path: str,
        kind: ViolationKind,
        violations: Iterable[Violation],
    ) -> None:
        kept = [
            v
            for v in self._by_document.get(document_id, [])
            if not (v.schema_id == schema_id and v.field_path == field_path and v.kind is kind)
        ]
        self._store(document_id, kept + list(violations))
        self._notify()

    def remove_document(self, document_id: str) -> None:
        if self._by_document.pop(document_id, None) is not None:
            self._notify()

    def remove_document_schema(self, document_id: str, schema_id: str) -> None:
        """Remove every violation of one document for one schema, duplicate_value included."""
        before = self._by_document.get(document_id)
        if not before:
            return
        kept = [v for v in before if v.schema_id != schema_id]
        if len(kept) != len(before):
            self._store(document_id, kept)
            self._notify()

    def remove_schema(self, schema_id: str) -> None:
        self._remove_where(lambda v: v.schema_id == schema_id)

    def remove_kind(self, schema_id: str, kind: ViolationKind) -> None:
        self._remove_where(lambda v: v.schema_id == schema_id and v.kind is kind)

    def rename_document(self, old_id: str, new_id: str) -> None:
        violations = self._by_document.pop(old_id, None)
        if violations is None:
            return
        self._by_document[new_id] = [
            Violation(
                document_id=new_id,
                schema_id=v.schema_id,
                field_path=v.field_path,
                kind=v.kind,
                message=v.message,
                expected=v.expected,
                actual=v.actual,
            )
            for v in violations
        ]
        self._notify()

    def clear(self) -> None:
        self._by_document.clear()
        self._notify()

    def mark_full_validation(self) -> None:
        self.last_full_validation = time.time()

    def _store(self, document_id: str, violations: list[Violation]) -> None:
        if violations:
            self._by_document[document_id] = violations
        else:
            self._by_document.pop(document_id, None)

    def _remove_where(self, predicate: Callable[[Violation], bool]) -> None:
        changed = False
        for document_id in list(self._by_document):
            violations = self._by_document[document_id]
            kept = [v for v in violations if not predicate(v)]
            if len(kept) != len(violations):
                changed = True
                self._store(document_id, kept)
        if changed:
            self._notify()

    # --- Queries ---

    def document_violations(self, document_id: str) -> list[Violation]:
        return list(self._by_document.get(document_id, []))

    def all_violations(self, severity: Severity = Severity.ALL) -> list[Violation]:
        return [v for vs in self._by_document.values() for v in vs if v.matches(severity)]

    def schema_violations(self, schema_id: str) -> list[Violation]:
        return [v for vs in self._by_document.values() for v in vs if v.schema_id == schema_id]

    def by_document(self, severity: Severity = Severity.ALL) -> dict[str, list[Violation]]:
        """Violations grouped by document, sorted by id, empty groups dropped."""
        grouped: dict[str, list[Violation]] = {}
        for document_id in sorted(self._by_document):
            matching = [v for v in self._by_document[document_id] if v.matches(severity)]
            if matching:
                grouped[document_id] = matching
        return grouped

    def counts(self) -> ViolationCounts:
        violations = self.all_violations()
        warnings = sum(1 for v in violations if v.is_warning)
        return ViolationCounts(
            total=len(violations),
            documents=len(self._by_document),
            errors=len(violations) - warnings,
            warnings=warnings,
        )

    def has_errors(self) -> bool:
        return any(not v.is_warning for vs in self._by_document.values() for v in vs)

    def __len__(self) -> int:
        return sum(len(vs) for vs in self._by_document.values())

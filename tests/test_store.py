"""Tests for noteschema.store -- the violation sink."""

from noteschema.schema.violations import Severity, Violation, ViolationKind
from noteschema.store import ViolationStore


def _violation(
    document_id: str = "a.md",
    schema_id: str = "books",
    field_path: str = "title",
    kind: ViolationKind = ViolationKind.MISSING_REQUIRED,
) -> Violation:
    return Violation(
        document_id=document_id,
        schema_id=schema_id,
        field_path=field_path,
        kind=kind,
        message=f"{kind.value}: {field_path}",
    )


class TestMutations:
    def test_set_schema_violations_replaces_one_schema_slice(self):
        store = ViolationStore()
        store.add([_violation(schema_id="books"), _violation(schema_id="notes")])

        store.set_schema_violations("a.md", "books", [_violation(field_path="isbn")])

        assert sorted((v.schema_id, v.field_path) for v in store.document_violations("a.md")) == [
            ("books", "isbn"),
            ("notes", "title"),
        ]

    def test_set_schema_violations_keeps_duplicates(self):
        store = ViolationStore()
        duplicate = _violation(field_path="isbn", kind=ViolationKind.DUPLICATE_VALUE)
        store.add([duplicate, _violation()])

        store.set_schema_violations("a.md", "books", [])

        assert store.document_violations("a.md") == [duplicate]

    def test_replace_field_violations(self):
        store = ViolationStore()
        store.add([_violation(field_path="isbn", kind=ViolationKind.DUPLICATE_VALUE)])
        replacement = Violation(
            document_id="a.md",
            schema_id="books",
            field_path="isbn",
            kind=ViolationKind.DUPLICATE_VALUE,
            message="updated",
        )

        store.replace_field_violations(
            "a.md", "books", "isbn", ViolationKind.DUPLICATE_VALUE, [replacement]
        )

        assert store.document_violations("a.md") == [replacement]

    def test_remove_operations(self):
        store = ViolationStore()
        store.add(
            [
                _violation("a.md", "books"),
                _violation("a.md", "notes"),
                _violation("b.md", "books", "isbn", ViolationKind.DUPLICATE_VALUE),
                _violation("c.md", "books"),
            ]
        )

        store.remove_kind("books", ViolationKind.DUPLICATE_VALUE)
        assert store.document_violations("b.md") == []

        store.remove_document_schema("a.md", "notes")
        assert [v.schema_id for v in store.document_violations("a.md")] == ["books"]

        store.remove_schema("books")
        assert len(store) == 0

    def test_rename_document(self):
        store = ViolationStore()
        store.add([_violation("old.md")])

        store.rename_document("old.md", "new.md")

        assert store.document_violations("old.md") == []
        assert [v.document_id for v in store.document_violations("new.md")] == ["new.md"]


class TestQueries:
    def _store(self) -> ViolationStore:
        store = ViolationStore()
        store.add(
            [
                _violation("b.md"),
                _violation("a.md", field_path="extra", kind=ViolationKind.UNKNOWN_FIELD),
                _violation("a.md"),
            ]
        )
        return store

    def test_counts(self):
        counts = self._store().counts()

        assert counts.total == 3
        assert counts.documents == 2
        assert counts.errors == 2
        assert counts.warnings == 1

    def test_by_document_is_sorted_and_filtered(self):
        store = self._store()

        assert list(store.by_document()) == ["a.md", "b.md"]
        warnings = store.by_document(Severity.WARNINGS)
        assert list(warnings) == ["a.md"]
        assert [v.field_path for v in warnings["a.md"]] == ["extra"]

    def test_severity_filters(self):
        store = self._store()

        assert len(store.all_violations(Severity.ERRORS)) == 2
        assert len(store.all_violations(Severity.WARNINGS)) == 1
        assert store.has_errors()


class TestNotifications:
    def test_each_mutation_notifies(self):
        store = ViolationStore()
        calls = []
        store.subscribe(lambda: calls.append(1))

        store.add([_violation()])
        store.remove_document("a.md")

        assert len(calls) == 2

    def test_batches_notify_once(self):
        store = ViolationStore()
        calls = []
        store.subscribe(lambda: calls.append(1))

        with store.batch():
            store.add([_violation()])
            with store.batch():
                store.set_schema_violations("a.md", "books", [])
            assert calls == []

        assert len(calls) == 1

    def test_no_op_mutations_do_not_notify(self):
        store = ViolationStore()
        calls = []
        store.subscribe(lambda: calls.append(1))

        store.add([])
        store.remove_document("missing.md")
        store.remove_schema("books")

        assert calls == []

    def test_unsubscribe(self):
        store = ViolationStore()
        calls = []
        unsubscribe = store.subscribe(lambda: calls.append(1))

        unsubscribe()
        store.add([_violation()])

        assert calls == []

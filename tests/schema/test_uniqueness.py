"""Tests for noteschema.schema.uniqueness -- corpus-wide duplicate detection."""

from datetime import date

from noteschema.schema.model import FieldSpec, SchemaMapping
from noteschema.schema.uniqueness import UniquenessTracker, normalize_unique_value
from noteschema.schema.violations import ViolationKind

BOOKS = SchemaMapping(
    id="books",
    query="#book",
    fields=(
        FieldSpec(name="title", type="string"),
        FieldSpec(name="isbn", type="string", unique=True),
    ),
)


class TestNormalization:
    def test_scalars(self):
        assert normalize_unique_value("abc") == "abc"
        assert normalize_unique_value(5) == "5"
        assert normalize_unique_value(5.0) == "5"
        assert normalize_unique_value(True) == "true"
        assert normalize_unique_value(date(2024, 1, 1)) == "2024-01-01"

    def test_lists_ignore_order(self):
        assert normalize_unique_value(["b", "a"]) == normalize_unique_value(["a", "b"])

    def test_number_and_numeric_string_share_a_bucket(self):
        assert normalize_unique_value(42) == normalize_unique_value("42")

    def test_distinct_mappings_do_not_collide(self):
        assert normalize_unique_value({"name": "Ann"}) != normalize_unique_value({"name": "Bob"})
        assert normalize_unique_value({"name": "Ann"}) == normalize_unique_value({"name": "Ann"})


class TestTracker:
    def test_inactive_without_unique_fields(self):
        schema = SchemaMapping(id="plain", query="*", fields=(FieldSpec(name="a", type="string"),))
        tracker = UniquenessTracker(schema)

        assert not tracker.active
        assert tracker.observe("a.md", {"a": "x"}) == []

    def test_first_occurrence_is_silent(self):
        tracker = UniquenessTracker(BOOKS)
        assert tracker.observe("a.md", {"isbn": "1"}) == []

    def test_second_occurrence_flags_both_documents(self):
        tracker = UniquenessTracker(BOOKS)
        tracker.observe("a.md", {"isbn": "1"})

        violations = tracker.observe("b.md", {"isbn": "1"})

        assert [v.document_id for v in violations] == ["a.md", "b.md"]
        assert all(v.kind is ViolationKind.DUPLICATE_VALUE for v in violations)
        assert violations[0].message == 'Duplicate value: isbn "1" is also used by b.md'
        assert violations[1].message == 'Duplicate value: isbn "1" is also used by a.md'

    def test_three_way_duplicates_reference_the_other_two(self):
        tracker = UniquenessTracker(BOOKS)
        tracker.observe("a.md", {"isbn": "1"})
        tracker.observe("b.md", {"isbn": "1"})

        violations = tracker.observe("c.md", {"isbn": "1"})
        messages = {v.document_id: v.message for v in violations}

        assert messages == {
            "a.md": 'Duplicate value: isbn "1" is also used by b.md, c.md',
            "b.md": 'Duplicate value: isbn "1" is also used by a.md, c.md',
            "c.md": 'Duplicate value: isbn "1" is also used by a.md, b.md',
        }

    def test_missing_and_null_values_are_skipped(self):
        tracker = UniquenessTracker(BOOKS)
        tracker.observe("a.md", {"isbn": None})
        tracker.observe("b.md", {"isbn": None})
        tracker.observe("c.md", {"title": "No isbn"})
        tracker.observe("d.md", None)

        assert tracker.duplicates() == {}

    def test_keys_are_looked_up_case_insensitively(self):
        tracker = UniquenessTracker(BOOKS)
        tracker.observe("a.md", {"ISBN": "1"})

        assert len(tracker.observe("b.md", {"isbn": "1"})) == 2

    def test_observing_a_document_twice_is_ignored(self):
        tracker = UniquenessTracker(BOOKS)
        tracker.observe("a.md", {"isbn": "1"})

        assert tracker.observe("a.md", {"isbn": "1"}) == []
        assert tracker.duplicates() == {}

    def test_duplicates_lists_buckets(self):
        tracker = UniquenessTracker(BOOKS)
        tracker.observe("a.md", {"isbn": "1"})
        tracker.observe("b.md", {"isbn": "1"})
        tracker.observe("c.md", {"isbn": "2"})

        assert tracker.duplicates() == {("isbn", "1"): ["a.md", "b.md"]}

"""Tests for noteschema.schema.inference -- template extraction and frequency analysis."""

from datetime import date

from noteschema.schema.inference import (
    analyze_keys,
    extract_schema_from_template,
    field_to_dict,
    format_type_display,
    infer_field_type,
    infer_schema,
)
from noteschema.schema.model import FieldSpec


# --- Type inference ---


class TestInferFieldType:
    def test_primitives(self):
        assert infer_field_type(None) == "unknown"
        assert infer_field_type(True) == "boolean"
        assert infer_field_type(3) == "number"
        assert infer_field_type(2.5) == "number"
        assert infer_field_type("text") == "string"

    def test_dates(self):
        assert infer_field_type("2024-01-01") == "date"
        assert infer_field_type(date(2024, 1, 1)) == "date"

    def test_containers(self):
        assert infer_field_type(["a"]) == "array"
        assert infer_field_type({"a": 1}) == "object"


# --- Template extraction ---


class TestExtractSchemaFromTemplate:
    def test_one_required_field_per_key(self):
        fields = extract_schema_from_template(
            {"title": "", "rating": 0, "read": False, "started": "2024-01-01", "tags": []}
        )

        assert [(f.name, f.type_name, f.required) for f in fields] == [
            ("title", "string", True),
            ("rating", "number", True),
            ("read", "boolean", True),
            ("started", "date", True),
            ("tags", "array", True),
        ]

    def test_position_is_skipped(self):
        fields = extract_schema_from_template({"position": {"start": 0}, "title": "x"})
        assert [f.name for f in fields] == ["title"]

    def test_empty_values_use_native_type_hints(self):
        fields = extract_schema_from_template(
            {"due": None, "done": None, "notes": None},
            native_types={"due": "datetime", "done": "checkbox"},
        )

        assert [f.type_name for f in fields] == ["date", "boolean", "unknown"]

    def test_no_frontmatter(self):
        assert extract_schema_from_template(None) == []
        assert extract_schema_from_template({}) == []


class TestFieldRendering:
    def test_format_type_display(self):
        assert format_type_display(FieldSpec(name="a", type="string")) == "string"
        assert (
            format_type_display(FieldSpec(name="people", type="array", array_element_type="person"))
            == "person[]"
        )
        assert format_type_display(FieldSpec(name="tags", type="array")) == "array"

    def test_field_to_dict_omits_defaults(self):
        assert field_to_dict(FieldSpec(name="a", type="string")) == {"name": "a", "type": "string"}
        assert field_to_dict(
            FieldSpec(name="isbn", type="string", required=True, unique=True)
        ) == {"name": "isbn", "type": "string", "required": True, "unique": True}


# --- Corpus inference ---


class TestInferSchema:
    notes = [
        {"title": "Dune", "rating": 5, "status": "read"},
        {"title": "Sapiens", "rating": 4},
        {"title": "Emma", "rating": "n/a"},
        {"title": "Ulysses", "rating": 3, "status": "abandoned", "shelf": "top"},
    ]

    def test_thresholds(self):
        result = infer_schema(self.notes, required_threshold=0.95, optional_threshold=0.5)

        assert result.notes_analyzed == 4
        assert result.suggested_required == ["title", "rating"]
        assert result.suggested_optional == ["status"]
        assert result.excluded == ["shelf"]
        assert [f.name for f in result.suggested_fields] == ["title", "rating", "status"]

    def test_dominant_type(self):
        result = infer_schema(self.notes)
        rating = next(f for f in result.suggested_fields if f.name == "rating")

        assert rating.type_name == "number"
        assert rating.required is True

    def test_frequencies(self):
        frequencies = {f.name: f for f in analyze_keys(self.notes, 4, max_sample_values=2)}

        assert frequencies["status"].count == 2
        assert frequencies["status"].percentage == 0.5
        assert frequencies["rating"].type_counts == {"number": 3, "string": 1}
        assert frequencies["title"].sample_values == ["Dune", "Sapiens"]

    def test_notes_without_frontmatter_count_towards_the_total(self):
        result = infer_schema([{"title": "a"}, None])

        assert result.notes_analyzed == 2
        assert result.suggested_required == []
        assert result.suggested_optional == ["title"]

    def test_no_notes(self):
        result = infer_schema([])

        assert result.notes_analyzed == 0
        assert result.suggested_fields == []

"""Tests for noteschema.schema.validator -- frontmatter validation against schemas."""

from noteschema.schema.model import (
    CrossFieldConstraint,
    FieldCondition,
    FieldSpec,
    NamedType,
    NumberConstraints,
    SchemaMapping,
    StringConstraints,
)
from noteschema.schema.operators import Operator
from noteschema.schema.registry import TypeRegistry
from noteschema.schema.validator import SchemaValidator, filter_native_properties
from noteschema.schema.violations import ViolationKind


# --- Test Helpers ---


def _schema(*fields: FieldSpec) -> SchemaMapping:
    return SchemaMapping(id="test", query="*", fields=fields)


def _validate(schema: SchemaMapping, frontmatter, registry: TypeRegistry | None = None, **kwargs):
    validator = SchemaValidator(registry or TypeRegistry())
    return validator.validate("note.md", frontmatter, schema, **kwargs)


def _kinds(violations) -> list[ViolationKind]:
    return [v.kind for v in violations]


def _address_registry() -> TypeRegistry:
    return TypeRegistry(
        [
            NamedType(
                name="address",
                fields=(
                    FieldSpec(name="street", type="string", required=True),
                    FieldSpec(
                        name="zip",
                        type="string",
                        string_constraints=StringConstraints(pattern=r"^\d{5}$"),
                    ),
                ),
            )
        ]
    )


# --- Unions ---


class TestUnions:
    schema = _schema(
        FieldSpec(name="due", type="date"),
        FieldSpec(name="due", type="null"),
    )

    def test_value_matching_either_variant_passes(self):
        assert _validate(self.schema, {"due": "2024-01-01"}) == []
        assert _validate(self.schema, {"due": None}) == []

    def test_value_matching_neither_yields_one_mismatch(self):
        violations = _validate(self.schema, {"due": 5})

        assert _kinds(violations) == [ViolationKind.TYPE_MISMATCH]
        assert violations[0].message == "Type mismatch: due (expected date | null, got number)"
        assert violations[0].expected == "date | null"
        assert violations[0].actual == "number"

    def test_constraints_apply_to_the_matched_variant_only(self):
        schema = _schema(
            FieldSpec(name="rating", type="number", number_constraints=NumberConstraints(min=1)),
            FieldSpec(name="rating", type="string"),
        )

        assert _validate(schema, {"rating": "high"}) == []
        assert _kinds(_validate(schema, {"rating": 0})) == [ViolationKind.NUMBER_TOO_SMALL]


# --- Presence ---


class TestPresence:
    def test_requiredness_is_or_across_variants(self):
        schema = _schema(
            FieldSpec(name="x", type="string", required=True),
            FieldSpec(name="x", type="null"),
        )
        violations = _validate(schema, {})

        assert _kinds(violations) == [ViolationKind.MISSING_REQUIRED]
        assert violations[0].message == "Missing required field: x"

    def test_missing_frontmatter_reports_required_fields(self):
        schema = _schema(FieldSpec(name="title", type="string", required=True))
        assert _kinds(_validate(schema, None)) == [ViolationKind.MISSING_REQUIRED]

    def test_warned_fields_produce_warnings(self):
        schema = _schema(FieldSpec(name="summary", type="string", warn=True))

        missing = _validate(schema, {})
        mismatched = _validate(schema, {"summary": 3})

        assert _kinds(missing) == [ViolationKind.MISSING_WARNED]
        assert missing[0].is_warning
        assert _kinds(mismatched) == [ViolationKind.TYPE_MISMATCH_WARNED]

    def test_required_wins_over_warn(self):
        schema = _schema(
            FieldSpec(name="summary", type="string", warn=True),
            FieldSpec(name="summary", type="null", required=True),
        )
        assert _kinds(_validate(schema, {})) == [ViolationKind.MISSING_REQUIRED]

    def test_top_level_keys_are_case_insensitive(self):
        schema = _schema(FieldSpec(name="Title", type="string", required=True))
        assert _validate(schema, {"title": "Dune"}) == []


# --- Conditions ---


class TestConditions:
    schema = _schema(
        FieldSpec(name="type", type="string"),
        FieldSpec(
            name="url",
            type="string",
            required=True,
            conditions=(FieldCondition(field="type", operator=Operator.EQUALS, value="link"),),
        ),
    )

    def test_inactive_variant_is_skipped(self):
        assert _validate(self.schema, {"type": "note"}) == []

    def test_active_variant_is_enforced(self):
        violations = _validate(self.schema, {"type": "link"})

        assert _kinds(violations) == [ViolationKind.MISSING_REQUIRED]
        assert violations[0].field_path == "url"

    def test_condition_field_is_case_insensitive(self):
        schema = _schema(
            FieldSpec(name="Type", type="string"),
            *self.schema.fields[1:],
        )
        assert _kinds(_validate(schema, {"Type": "link"})) == [ViolationKind.MISSING_REQUIRED]

    def test_or_logic(self):
        schema = _schema(
            FieldSpec(name="status", type="string"),
            FieldSpec(
                name="finished",
                type="date",
                required=True,
                conditions=(
                    FieldCondition(field="status", operator=Operator.EQUALS, value="done"),
                    FieldCondition(field="status", operator=Operator.EQUALS, value="archived"),
                ),
                condition_logic="or",
            ),
        )

        assert _kinds(_validate(schema, {"status": "archived"})) == [
            ViolationKind.MISSING_REQUIRED
        ]
        assert _validate(schema, {"status": "reading"}) == []

    def test_nested_conditions_read_sibling_keys(self):
        registry = TypeRegistry(
            [
                NamedType(
                    name="block",
                    fields=(
                        FieldSpec(name="kind", type="string"),
                        FieldSpec(
                            name="url",
                            type="string",
                            warn=True,
                            conditions=(
                                FieldCondition(field="kind", operator=Operator.EQUALS, value="link"),
                            ),
                        ),
                    ),
                )
            ]
        )
        schema = _schema(FieldSpec(name="block", type="block"))

        linked = _validate(schema, {"block": {"kind": "link"}}, registry)

        assert _kinds(linked) == [ViolationKind.MISSING_WARNED]
        assert linked[0].field_path == "block.url"
        assert _validate(schema, {"block": {"kind": "note"}}, registry) == []


# --- Unknown fields ---


class TestUnknownFields:
    schema = _schema(FieldSpec(name="title", type="string"))

    def test_undeclared_keys_are_reported(self):
        violations = _validate(self.schema, {"title": "Dune", "extra": 1})

        assert _kinds(violations) == [ViolationKind.UNKNOWN_FIELD]
        assert violations[0].field_path == "extra"
        assert violations[0].message == "Unknown field: extra (not defined in schema)"
        assert violations[0].is_warning

    def test_check_can_be_disabled(self):
        assert _validate(self.schema, {"extra": 1}, check_unknown_fields=False) == []

    def test_position_is_never_reported(self):
        assert _validate(self.schema, {"position": {"start": 0}}) == []

    def test_native_properties_are_filtered_post_hoc(self):
        violations = _validate(self.schema, {"tags": ["a"], "Aliases": ["b"], "extra": 1})

        assert len(violations) == 3
        filtered = filter_native_properties(violations)
        assert [v.field_path for v in filtered] == ["extra"]


# --- Named types and arrays ---


class TestNamedTypes:
    schema = _schema(FieldSpec(name="home", type="address"))

    def test_constraints_inside_named_types_use_dotted_paths(self):
        violations = _validate(
            self.schema, {"home": {"street": "Main", "zip": "12"}}, _address_registry()
        )

        assert _kinds(violations) == [ViolationKind.PATTERN_MISMATCH]
        assert violations[0].field_path == "home.zip"

    def test_unknown_nested_keys(self):
        violations = _validate(
            self.schema, {"home": {"street": "Main", "color": "red"}}, _address_registry()
        )

        assert _kinds(violations) == [ViolationKind.UNKNOWN_FIELD]
        assert violations[0].field_path == "home.color"
        assert violations[0].message == (
            'Unknown field: home.color (not defined in type "address")'
        )

    def test_mismatch_message_lists_sub_field_errors(self):
        violations = _validate(self.schema, {"home": {"zip": "12345"}}, _address_registry())

        assert _kinds(violations) == [ViolationKind.TYPE_MISMATCH]
        assert violations[0].message == (
            'Type mismatch: home (expected address): missing required field "street"'
        )

    def test_nested_keys_are_matched_exactly(self):
        violations = _validate(self.schema, {"home": {"Street": "Main"}}, _address_registry())
        assert _kinds(violations) == [ViolationKind.TYPE_MISMATCH]


class TestArrays:
    def test_primitive_element_type(self):
        schema = _schema(FieldSpec(name="tags", type="array", array_element_type="string"))
        violations = _validate(schema, {"tags": ["a", 2]})

        assert _kinds(violations) == [ViolationKind.TYPE_MISMATCH]
        assert violations[0].field_path == "tags[1]"
        assert violations[0].message == (
            "Array element type mismatch: tags[1] (expected string, got number)"
        )

    def test_named_element_type_recurses_per_index(self):
        schema = _schema(FieldSpec(name="addresses", type="array", array_element_type="address"))
        registry = _address_registry()

        mismatched = _validate(schema, {"addresses": [{"street": "A"}, {"street": 1}]}, registry)
        constrained = _validate(schema, {"addresses": [{"street": "A", "zip": "1"}]}, registry)

        assert [v.field_path for v in mismatched] == ["addresses[1]"]
        assert mismatched[0].message == (
            "Array element type mismatch: addresses[1] (expected address): "
            '"street" expected string, got number'
        )
        assert [v.field_path for v in constrained] == ["addresses[0].zip"]


# --- Cross-field and general properties ---


class TestCrossField:
    def test_constraint_compares_against_the_document(self):
        schema = _schema(
            FieldSpec(name="start", type="date"),
            FieldSpec(
                name="end",
                type="date",
                cross_field_constraint=CrossFieldConstraint(
                    operator=Operator.GREATER_OR_EQUAL, field="start"
                ),
            ),
        )

        violations = _validate(schema, {"start": "2024-02-01", "end": "2024-01-01"})

        assert _kinds(violations) == [ViolationKind.CROSS_FIELD_VIOLATION]
        assert violations[0].field_path == "end"
        assert _validate(schema, {"start": "2024-01-01", "end": "2024-02-01"}) == []


class TestValidationProperties:
    def test_validation_is_idempotent(self):
        schema = _schema(
            FieldSpec(name="title", type="string", required=True),
            FieldSpec(name="rating", type="number", number_constraints=NumberConstraints(max=5)),
        )
        frontmatter = {"rating": 9, "extra": True}

        first = _validate(schema, frontmatter)
        second = _validate(schema, frontmatter)

        assert first == second
        assert len(first) == 3

    def test_violations_carry_document_and_schema_ids(self):
        schema = _schema(FieldSpec(name="title", type="string", required=True))
        violation = _validate(schema, {})[0]

        assert violation.document_id == "note.md"
        assert violation.schema_id == "test"

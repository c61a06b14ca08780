"""Schema validator for noteschema.

Validates one document's frontmatter against one SchemaMapping and returns a
fresh list of violations. The walk per field group is:

  conditions   -> drop variants whose conditions fail; no survivors = skip group
  presence     -> missing_required / missing_warned from the surviving variants
  type         -> first matching variant wins; none = type_mismatch
  constraints  -> checked against the winning variant only
  recursion    -> named types and arrays of named types are walked with
                  dotted/bracketed paths (addresses[1].street.number)

Top-level keys are looked up case-insensitively. Keys inside nested objects
are matched exactly against the named type's declared field names.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from noteschema.schema import constraints
from noteschema.schema.matcher import TypeMatcher, is_mapping, is_sequence
from noteschema.schema.model import (
    FieldGroup,
    FieldSpec,
    FieldType,
    NamedType,
    PrimitiveKind,
    SchemaMapping,
    is_primitive,
)
from noteschema.schema.operators import evaluate
from noteschema.schema.registry import TypeRegistry
from noteschema.schema.violations import Violation, ViolationBuilder, ViolationKind
from noteschema.utils import LowerKeyMap, actual_type_name

# Keys the host injects into parsed frontmatter; never reported as unknown
EXCLUDED_FIELDS = frozenset({"position"})

# Host-native reserved properties, suppressed post-hoc when the host allows them
NATIVE_PROPERTIES = frozenset({"aliases", "tags", "cssclasses", "cssclass"})


@dataclass(frozen=True)
class _Pass:
    """State shared across one document's validation."""

    report: ViolationBuilder
    frontmatter: Mapping[str, Any]
    key_map: LowerKeyMap


class SchemaValidator:
    """Validates frontmatter dicts against schema mappings."""

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self.matcher = TypeMatcher(registry)

    def validate(
        self,
        document_id: str,
        frontmatter: Mapping[str, Any] | None,
        schema: SchemaMapping,
        check_unknown_fields: bool = True,
    ) -> list[Violation]:
        """Validate a document's frontmatter against a schema.

        Args:
            document_id: Identifier stamped onto every violation (vault-relative path).
            frontmatter: The parsed frontmatter, or None when the note has none.
            schema: The schema mapping to validate against.
            check_unknown_fields: Report top-level keys the schema does not declare.

        Returns:
            The violations found, in a stable order.
        """
        data: Mapping[str, Any] = frontmatter or {}
        key_map = LowerKeyMap(data)
        ctx = _Pass(
            report=ViolationBuilder(document_id=document_id, schema_id=schema.id),
            frontmatter=data,
            key_map=key_map,
        )

        violations: list[Violation] = []

        for group in schema.groups:
            actual_key = key_map.lookup(group.name)
            present = actual_key is not None
            value = data[actual_key] if present else None
            violations.extend(
                self._validate_group(value, present, group, group.name, data, key_map, ctx)
            )

        # --- Unknown top-level fields ---
        if check_unknown_fields:
            for key in data:
                if key in EXCLUDED_FIELDS:
                    continue
                if str(key).lower() not in schema.field_names_lower:
                    violations.append(
                        ctx.report(
                            str(key),
                            ViolationKind.UNKNOWN_FIELD,
                            f"Unknown field: {key} (not defined in schema)",
                        )
                    )

        return violations

    # --- Field groups ---

    def _validate_group(
        self,
        value: Any,
        present: bool,
        group: FieldGroup,
        path: str,
        scope: Mapping[str, Any],
        scope_keys: LowerKeyMap,
        ctx: _Pass,
    ) -> list[Violation]:
        applicable = tuple(v for v in group.variants if self._conditions_hold(v, scope, scope_keys))
        if not applicable:
            return []

        active = FieldGroup(name=group.name, variants=applicable)

        if not present:
            if active.is_required:
                return [
                    ctx.report(
                        path,
                        ViolationKind.MISSING_REQUIRED,
                        f"Missing required field: {path}",
                    )
                ]
            if active.is_warned:
                return [
                    ctx.report(
                        path,
                        ViolationKind.MISSING_WARNED,
                        f"Missing recommended field: {path}",
                    )
                ]
            return []

        variant = self.matcher.find_matching_variant(value, applicable)
        if variant is None:
            return [self._type_mismatch(value, active, path, ctx)]

        return self._validate_value(value, variant, path, ctx)

    def _conditions_hold(
        self,
        spec: FieldSpec,
        scope: Mapping[str, Any],
        scope_keys: LowerKeyMap,
    ) -> bool:
        if not spec.conditions:
            return True

        results = []
        for condition in spec.conditions:
            key = scope_keys.lookup(condition.field)
            field_value = scope[key] if key is not None else None
            results.append(evaluate(field_value, condition.operator, condition.value))

        if spec.condition_logic == "or":
            return any(results)
        return all(results)

    def _type_mismatch(self, value: Any, group: FieldGroup, path: str, ctx: _Pass) -> Violation:
        expected = group.expected_types
        actual = actual_type_name(value)
        message = f"Type mismatch: {path} (expected {expected}, got {actual})"

        # Explain named type mismatches field by field
        if is_mapping(value):
            for variant in group.variants:
                named_type = self.registry.resolve(variant.type)
                if named_type is None:
                    continue
                errors = self.matcher.named_type_errors(value, named_type)
                if errors:
                    message = (
                        f"Type mismatch: {path} (expected {variant.type_name}): {'; '.join(errors)}"
                    )
                    break

        kind = ViolationKind.TYPE_MISMATCH_WARNED if group.is_warned else ViolationKind.TYPE_MISMATCH
        return ctx.report(path, kind, message, expected=expected, actual=actual)

    # --- Values ---

    def _validate_value(self, value: Any, spec: FieldSpec, path: str, ctx: _Pass) -> list[Violation]:
        violations: list[Violation] = []
        field_type = spec.type

        if is_primitive(field_type, PrimitiveKind.STRING) and spec.string_constraints:
            violations.extend(constraints.check_string(value, spec.string_constraints, path, ctx.report))

        if is_primitive(field_type, PrimitiveKind.NUMBER) and spec.number_constraints:
            violations.extend(constraints.check_number(value, spec.number_constraints, path, ctx.report))

        if is_primitive(field_type, PrimitiveKind.DATE) and spec.date_constraints:
            violations.extend(constraints.check_date(value, spec.date_constraints, path, ctx.report))

        if is_primitive(field_type, PrimitiveKind.ARRAY) and is_sequence(value):
            if spec.array_constraints:
                violations.extend(
                    constraints.check_array(value, spec.array_constraints, path, ctx.report)
                )
            if spec.array_element_type is not None:
                violations.extend(self._validate_elements(value, spec.array_element_type, path, ctx))

        named_type = self.registry.resolve(field_type)
        if named_type is not None and is_mapping(value):
            violations.extend(self._validate_object(value, named_type, path, ctx))

        if spec.cross_field_constraint is not None:
            violations.extend(
                constraints.check_cross_field(
                    value,
                    spec.cross_field_constraint,
                    path,
                    ctx.report,
                    ctx.frontmatter,
                    ctx.key_map,
                )
            )

        return violations

    def _validate_elements(
        self,
        values: Iterable[Any],
        element_type: FieldType,
        path: str,
        ctx: _Pass,
    ) -> list[Violation]:
        violations: list[Violation] = []
        named_type = self.registry.resolve(element_type)

        for index, element in enumerate(values):
            element_path = f"{path}[{index}]"

            if not self.matcher.matches(element, element_type):
                actual = actual_type_name(element)
                message = (
                    f"Array element type mismatch: {element_path} "
                    f"(expected {element_type.name}, got {actual})"
                )
                if named_type is not None and is_mapping(element):
                    errors = self.matcher.named_type_errors(element, named_type)
                    if errors:
                        message = (
                            f"Array element type mismatch: {element_path} "
                            f"(expected {element_type.name}): {'; '.join(errors)}"
                        )
                violations.append(
                    ctx.report(
                        element_path,
                        ViolationKind.TYPE_MISMATCH,
                        message,
                        expected=element_type.name,
                        actual=actual,
                    )
                )
            elif named_type is not None and is_mapping(element):
                violations.extend(self._validate_object(element, named_type, element_path, ctx))

        return violations

    def _validate_object(
        self,
        obj: Mapping[str, Any],
        named_type: NamedType,
        path: str,
        ctx: _Pass,
    ) -> list[Violation]:
        violations: list[Violation] = []

        for key in obj:
            if key not in named_type.field_names:
                violations.append(
                    ctx.report(
                        f"{path}.{key}",
                        ViolationKind.UNKNOWN_FIELD,
                        f'Unknown field: {path}.{key} (not defined in type "{named_type.name}")',
                    )
                )

        obj_keys = LowerKeyMap(obj)
        for group in named_type.groups:
            present = group.name in obj
            value = obj[group.name] if present else None
            violations.extend(
                self._validate_group(value, present, group, f"{path}.{group.name}", obj, obj_keys, ctx)
            )

        return violations


def filter_native_properties(
    violations: Iterable[Violation],
    allowed: Iterable[str] = NATIVE_PROPERTIES,
) -> list[Violation]:
    """Drop unknown_field violations for host-native reserved properties."""
    allowed_lower = {name.lower() for name in allowed}
    return [
        v
        for v in violations
        if v.kind is not ViolationKind.UNKNOWN_FIELD or v.field_path.lower() not in allowed_lower
    ]

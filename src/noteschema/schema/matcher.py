"""Structural type matching.

Decides whether a value satisfies a declared field type. Matching ignores
constraints and unknown keys; both are checked later by the validator so they
can be reported against a precise field path. Matching is also what picks the
authoritative variant of a union, so it must stay side-effect free.
"""

import re
from collections.abc import Mapping
from datetime import date
from typing import Any

from noteschema.schema.model import (
    FieldGroup,
    FieldSpec,
    FieldType,
    NamedType,
    PrimitiveKind,
    PrimitiveType,
)
from noteschema.schema.registry import TypeRegistry
from noteschema.utils import actual_type_name

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


class TypeMatcher:
    """Matches values against primitive and named types."""

    def __init__(self, registry: TypeRegistry):
        self.registry = registry

    def matches(self, value: Any, field_type: FieldType) -> bool:
        if isinstance(field_type, PrimitiveType):
            return self._matches_primitive(value, field_type.kind)

        if value is None:
            return False

        named_type = self.registry.resolve(field_type)
        if named_type is None or not is_mapping(value):
            return False
        return self._matches_named(value, named_type)

    def find_matching_variant(self, value: Any, variants: tuple[FieldSpec, ...]) -> FieldSpec | None:
        """First variant, in declaration order, whose type matches the value."""
        for variant in variants:
            if self.matches(value, variant.type):
                return variant
        return None

    def named_type_errors(self, value: Mapping, named_type: NamedType) -> list[str]:
        """Describe why a mapping does not satisfy a named type, one entry per sub-field."""
        errors: list[str] = []
        for group in named_type.groups:
            if group.name not in value:
                if group.is_required:
                    errors.append(f'missing required field "{group.name}"')
                continue

            sub_value = value[group.name]
            if self.find_matching_variant(sub_value, group.variants) is None:
                errors.append(
                    f'"{group.name}" expected {group.expected_types}, '
                    f"got {actual_type_name(sub_value)}"
                )
        return errors

    # --- Internals ---

    def _matches_primitive(self, value: Any, kind: PrimitiveKind) -> bool:
        if kind is PrimitiveKind.NULL:
            return value is None
        if value is None:
            return False

        if kind is PrimitiveKind.STRING:
            return isinstance(value, str)
        if kind is PrimitiveKind.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if kind is PrimitiveKind.BOOLEAN:
            return isinstance(value, bool)
        if kind is PrimitiveKind.DATE:
            if isinstance(value, str):
                return ISO_DATE_RE.match(value) is not None
            return isinstance(value, date)
        if kind is PrimitiveKind.ARRAY:
            return is_sequence(value)
        if kind is PrimitiveKind.OBJECT:
            return is_mapping(value)
        return kind is PrimitiveKind.UNKNOWN

    def _matches_named(self, value: Mapping, named_type: NamedType) -> bool:
        for group in named_type.groups:
            if not self._group_holds(value, group):
                return False
        return True

    def _group_holds(self, value: Mapping, group: FieldGroup) -> bool:
        if group.name not in value:
            return not group.is_required
        return self.find_matching_variant(value[group.name], group.variants) is not None

"""Schema model, matching and validation for note frontmatter."""

from noteschema.schema.model import (
    ArrayConstraints,
    CrossFieldConstraint,
    DateConstraints,
    FieldCondition,
    FieldGroup,
    FieldSpec,
    NamedType,
    NamedTypeRef,
    NumberConstraints,
    PrimitiveKind,
    PrimitiveType,
    PropertyCondition,
    PropertyFilter,
    SchemaMapping,
    StringConstraints,
)
from noteschema.schema.operators import Operator
from noteschema.schema.registry import TypeRegistry
from noteschema.schema.uniqueness import UniquenessTracker
from noteschema.schema.validator import SchemaValidator, filter_native_properties
from noteschema.schema.violations import Severity, Violation, ViolationKind

__all__ = [
    "ArrayConstraints",
    "CrossFieldConstraint",
    "DateConstraints",
    "FieldCondition",
    "FieldGroup",
    "FieldSpec",
    "NamedType",
    "NamedTypeRef",
    "NumberConstraints",
    "Operator",
    "PrimitiveKind",
    "PrimitiveType",
    "PropertyCondition",
    "PropertyFilter",
    "SchemaMapping",
    "SchemaValidator",
    "Severity",
    "StringConstraints",
    "TypeRegistry",
    "UniquenessTracker",
    "Violation",
    "ViolationKind",
    "filter_native_properties",
]

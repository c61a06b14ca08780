"""Pydantic models for the authored schema file."""

from noteschema.schemas.definitions import (
    ArrayConstraintsModel,
    ConditionModel,
    CrossFieldConstraintModel,
    DateConstraintsModel,
    FieldSpecModel,
    NamedTypeModel,
    NumberConstraintsModel,
    PropertyConditionModel,
    PropertyFilterModel,
    SchemaFileModel,
    SchemaMappingModel,
    StringConstraintsModel,
)

__all__ = [
    "ArrayConstraintsModel",
    "ConditionModel",
    "CrossFieldConstraintModel",
    "DateConstraintsModel",
    "FieldSpecModel",
    "NamedTypeModel",
    "NumberConstraintsModel",
    "PropertyConditionModel",
    "PropertyFilterModel",
    "SchemaFileModel",
    "SchemaMappingModel",
    "StringConstraintsModel",
]

"""Models for the authored schema file (YAML or JSON).

Keys are accepted in snake_case or camelCase:

  schemas:
    - id: books
      query: "Library/* and #book"
      fields:
        - name: isbn
          type: string
          unique: true
          stringConstraints: {pattern: "^[0-9-]+$"}

These models only validate shape. `noteschema.schema.loader` turns them into
the immutable core model and resolves type names.
"""

from datetime import date
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from noteschema.schema.operators import Operator, to_display_string


class DefinitionModel(BaseModel):
    """Base for authored definitions: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _as_text(value: Any) -> Any:
    # YAML hands back numbers, booleans and dates for unquoted scalars
    if value is None or isinstance(value, str):
        return value
    return to_display_string(value)


# --- Constraints ---


class StringConstraintsModel(DefinitionModel):
    pattern: str | None = None
    min_length: int | None = Field(None, ge=0)
    max_length: int | None = Field(None, ge=0)


class NumberConstraintsModel(DefinitionModel):
    min: float | None = None
    max: float | None = None


class DateConstraintsModel(DefinitionModel):
    min: str | None = Field(None, description="ISO date lower bound")
    max: str | None = Field(None, description="ISO date upper bound")

    @field_validator("min", "max", mode="before")
    @classmethod
    def _date_text(cls, value: Any) -> Any:
        if isinstance(value, date):
            return value.isoformat()
        return value


class ArrayConstraintsModel(DefinitionModel):
    min_items: int | None = Field(None, ge=0)
    max_items: int | None = Field(None, ge=0)
    contains: list[str] = Field(default_factory=list)

    @field_validator("contains", mode="before")
    @classmethod
    def _contains_text(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_as_text(item) for item in value]
        return value


class CrossFieldConstraintModel(DefinitionModel):
    operator: Operator
    field: str


class ConditionModel(DefinitionModel):
    field: str
    operator: Operator = Operator.EQUALS
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _value_text(cls, value: Any) -> Any:
        return _as_text(value)


# --- Fields and Types ---


class FieldSpecModel(DefinitionModel):
    name: str = Field(..., min_length=1)
    type: str = "string"
    required: bool = False
    warn: bool = False
    unique: bool = False
    conditions: list[ConditionModel] = Field(default_factory=list)
    condition_logic: Literal["and", "or"] = "and"
    array_element_type: str | None = None
    string_constraints: StringConstraintsModel | None = None
    number_constraints: NumberConstraintsModel | None = None
    date_constraints: DateConstraintsModel | None = None
    array_constraints: ArrayConstraintsModel | None = None
    cross_field_constraint: CrossFieldConstraintModel | None = None


class NamedTypeModel(DefinitionModel):
    name: str = Field(..., min_length=1)
    field_specs: list[FieldSpecModel] = Field(default_factory=list, alias="fields")


# --- Property Filters ---


class PropertyConditionModel(DefinitionModel):
    property: str
    operator: Operator = Operator.EQUALS
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _value_text(cls, value: Any) -> Any:
        return _as_text(value)


class PropertyFilterModel(DefinitionModel):
    modified_after: str | None = None
    modified_before: str | None = None
    created_after: str | None = None
    created_before: str | None = None
    has_property: str | None = None
    not_has_property: str | None = None
    conditions: list[PropertyConditionModel] = Field(default_factory=list)

    @field_validator(
        "modified_after", "modified_before", "created_after", "created_before", mode="before"
    )
    @classmethod
    def _date_text(cls, value: Any) -> Any:
        if isinstance(value, date):
            return value.isoformat()
        return value


# --- Schema Mappings ---


class SchemaMappingModel(DefinitionModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    query: str = ""
    enabled: bool = True
    field_specs: list[FieldSpecModel] = Field(default_factory=list, alias="fields")
    property_filter: PropertyFilterModel | None = None


class SchemaFileModel(DefinitionModel):
    """Top-level document: named types plus schema mappings."""

    types: list[NamedTypeModel] = Field(
        default_factory=list,
        validation_alias=AliasChoices("types", "custom_types", "customTypes"),
    )
    schemas: list[SchemaMappingModel] = Field(
        default_factory=list,
        validation_alias=AliasChoices("schemas", "schema_mappings", "schemaMappings"),
    )

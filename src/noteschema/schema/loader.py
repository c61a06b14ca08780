"""Build the immutable schema model from authored definitions.

  dict (YAML/JSON) -> SchemaFileModel (pydantic) -> SchemaSet(schemas, registry)

All configuration problems surface here as SchemaConfigError: shape errors
from pydantic, duplicate ids, references to undefined named types, and
cross-field constraints using a non-comparison operator.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from pydantic import ValidationError

from noteschema.errors import SchemaConfigError
from noteschema.schema.model import (
    ArrayConstraints,
    CrossFieldConstraint,
    DateConstraints,
    FieldCondition,
    FieldSpec,
    NamedType,
    NumberConstraints,
    PropertyCondition,
    PropertyFilter,
    SchemaMapping,
    StringConstraints,
)
from noteschema.schema.registry import TypeRegistry
from noteschema.schemas.definitions import (
    FieldSpecModel,
    NamedTypeModel,
    PropertyFilterModel,
    SchemaFileModel,
    SchemaMappingModel,
)


@dataclass(frozen=True)
class SchemaSet:
    """Resolved schema mappings together with the registry they were checked against."""

    schemas: tuple[SchemaMapping, ...] = ()
    registry: TypeRegistry = field(default_factory=TypeRegistry)

    def get(self, schema_id: str) -> SchemaMapping | None:
        for schema in self.schemas:
            if schema.id == schema_id:
                return schema
        return None

    @property
    def enabled(self) -> tuple[SchemaMapping, ...]:
        return tuple(s for s in self.schemas if s.enabled)

    def __iter__(self) -> Iterator[SchemaMapping]:
        return iter(self.schemas)

    def __len__(self) -> int:
        return len(self.schemas)


# --- Conversion ---


def build_field(model: FieldSpecModel, location: str) -> FieldSpec:
    cross_field = None
    if model.cross_field_constraint is not None:
        operator = model.cross_field_constraint.operator
        if not operator.is_comparison:
            raise SchemaConfigError(
                f"Field '{model.name}' uses '{operator.value}' in a cross-field constraint; "
                "only comparison operators are allowed",
                location=location,
            )
        cross_field = CrossFieldConstraint(operator=operator, field=model.cross_field_constraint.field)

    sc = model.string_constraints
    nc = model.number_constraints
    dc = model.date_constraints
    ac = model.array_constraints

    return FieldSpec(
        name=model.name,
        type=model.type,
        required=model.required,
        warn=model.warn,
        unique=model.unique,
        conditions=tuple(
            FieldCondition(field=c.field, operator=c.operator, value=c.value)
            for c in model.conditions
        ),
        condition_logic=model.condition_logic,
        array_element_type=model.array_element_type or None,
        string_constraints=(
            StringConstraints(pattern=sc.pattern, min_length=sc.min_length, max_length=sc.max_length)
            if sc
            else None
        ),
        number_constraints=NumberConstraints(min=nc.min, max=nc.max) if nc else None,
        date_constraints=DateConstraints(min=dc.min, max=dc.max) if dc else None,
        array_constraints=(
            ArrayConstraints(
                min_items=ac.min_items, max_items=ac.max_items, contains=tuple(ac.contains)
            )
            if ac
            else None
        ),
        cross_field_constraint=cross_field,
    )


def build_named_type(model: NamedTypeModel) -> NamedType:
    location = f"type '{model.name}'"
    return NamedType(
        name=model.name,
        fields=tuple(build_field(f, location) for f in model.field_specs),
    )


def build_property_filter(model: PropertyFilterModel | None) -> PropertyFilter | None:
    if model is None:
        return None
    return PropertyFilter(
        modified_after=model.modified_after,
        modified_before=model.modified_before,
        created_after=model.created_after,
        created_before=model.created_before,
        has_property=model.has_property,
        not_has_property=model.not_has_property,
        conditions=tuple(
            PropertyCondition(property=c.property, operator=c.operator, value=c.value)
            for c in model.conditions
        ),
    )


def build_schema(model: SchemaMappingModel, registry: TypeRegistry) -> SchemaMapping:
    location = f"schema '{model.id}'"
    fields = tuple(build_field(f, location) for f in model.field_specs)
    registry.check_references(fields, location=location)
    return SchemaMapping(
        id=model.id,
        name=model.name,
        query=model.query,
        enabled=model.enabled,
        fields=fields,
        property_filter=build_property_filter(model.property_filter),
    )


# --- Entry points ---


def load_schema_set(data: Mapping[str, Any] | None) -> SchemaSet:
    """Validate authored definitions and resolve them into a SchemaSet.

    Args:
        data: Parsed YAML/JSON content; None or empty yields an empty set.

    Raises:
        SchemaConfigError: If any definition is malformed or inconsistent.
    """
    try:
        parsed = SchemaFileModel.model_validate(dict(data or {}))
    except ValidationError as e:
        raise SchemaConfigError(f"Invalid schema definitions: {e}") from e

    return build_schema_set(parsed)


def build_schema_set(parsed: SchemaFileModel) -> SchemaSet:
    registry = TypeRegistry(build_named_type(t) for t in parsed.types)
    registry.validate()

    schemas: list[SchemaMapping] = []
    seen_ids: set[str] = set()
    for schema_model in parsed.schemas:
        if schema_model.id in seen_ids:
            raise SchemaConfigError(f"Duplicate schema id '{schema_model.id}'")
        seen_ids.add(schema_model.id)
        schemas.append(build_schema(schema_model, registry))

    logger.debug(f"Loaded {len(schemas)} schemas and {len(registry)} named types")
    return SchemaSet(schemas=tuple(schemas), registry=registry)

"""Core data model for noteschema schemas.

Every type here is an immutable value. Fields that share a name inside one
schema or named type form a union, collected once into a FieldGroup when the
owning SchemaMapping or NamedType is constructed:

  FieldSpec(name="due", type="date")
  FieldSpec(name="due", type="null")     -> FieldGroup("due", (date, null))

Field types are a tagged variant: a PrimitiveType or a NamedTypeRef that the
TypeRegistry resolves at load time.
"""

from dataclasses import dataclass, field
from enum import Enum

from noteschema.schema.operators import Operator


# --- Field Types ---


class PrimitiveKind(str, Enum):
    """Built-in field types."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"
    UNKNOWN = "unknown"


PRIMITIVE_NAMES = frozenset(kind.value for kind in PrimitiveKind)


@dataclass(frozen=True)
class PrimitiveType:
    kind: PrimitiveKind

    @property
    def name(self) -> str:
        return self.kind.value

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class NamedTypeRef:
    """Reference to a user-defined NamedType by name."""

    name: str

    def __str__(self) -> str:
        return self.name


FieldType = PrimitiveType | NamedTypeRef


def parse_field_type(value: "str | FieldType") -> FieldType:
    """Turn a type name into a FieldType. Non-primitive names become references."""
    if isinstance(value, (PrimitiveType, NamedTypeRef)):
        return value
    if value in PRIMITIVE_NAMES:
        return PrimitiveType(PrimitiveKind(value))
    return NamedTypeRef(value)


def is_primitive(field_type: FieldType, kind: PrimitiveKind) -> bool:
    return isinstance(field_type, PrimitiveType) and field_type.kind is kind


# --- Constraints ---


@dataclass(frozen=True)
class StringConstraints:
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None


@dataclass(frozen=True)
class NumberConstraints:
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True)
class DateConstraints:
    min: str | None = None  # ISO date
    max: str | None = None  # ISO date


@dataclass(frozen=True)
class ArrayConstraints:
    min_items: int | None = None
    max_items: int | None = None
    contains: tuple[str, ...] = ()


@dataclass(frozen=True)
class CrossFieldConstraint:
    """This field must compare to another field of the same document."""

    operator: Operator
    field: str


@dataclass(frozen=True)
class FieldCondition:
    """Activates a field variant only when another field satisfies the operator."""

    field: str
    operator: Operator
    value: str


# --- Fields ---


@dataclass(frozen=True)
class FieldSpec:
    """A single field declaration (one variant of a possible union)."""

    name: str
    type: FieldType
    required: bool = False
    warn: bool = False
    unique: bool = False
    conditions: tuple[FieldCondition, ...] = ()
    condition_logic: str = "and"  # "and" | "or"
    array_element_type: FieldType | None = None
    string_constraints: StringConstraints | None = None
    number_constraints: NumberConstraints | None = None
    date_constraints: DateConstraints | None = None
    array_constraints: ArrayConstraints | None = None
    cross_field_constraint: CrossFieldConstraint | None = None

    def __post_init__(self):
        # Accept plain type names and lists for convenience
        object.__setattr__(self, "type", parse_field_type(self.type))
        if self.array_element_type is not None:
            object.__setattr__(
                self, "array_element_type", parse_field_type(self.array_element_type)
            )
        object.__setattr__(self, "conditions", tuple(self.conditions))

    @property
    def type_name(self) -> str:
        return self.type.name


@dataclass(frozen=True)
class FieldGroup:
    """All variants declared under one field name, in declaration order."""

    name: str
    variants: tuple[FieldSpec, ...]

    @property
    def is_required(self) -> bool:
        return any(v.required for v in self.variants)

    @property
    def is_warned(self) -> bool:
        return not self.is_required and any(v.warn for v in self.variants)

    @property
    def is_unique(self) -> bool:
        return any(v.unique for v in self.variants)

    @property
    def expected_types(self) -> str:
        return " | ".join(v.type_name for v in self.variants)


def group_fields(fields: tuple[FieldSpec, ...] | list[FieldSpec]) -> tuple[FieldGroup, ...]:
    """Group fields by name, preserving first-declaration order of names and variants."""
    groups: dict[str, list[FieldSpec]] = {}
    for spec in fields:
        groups.setdefault(spec.name, []).append(spec)
    return tuple(FieldGroup(name=name, variants=tuple(variants)) for name, variants in groups.items())


# --- Named Types ---


@dataclass(frozen=True)
class NamedType:
    """A reusable structural type referenced by name from field specs."""

    name: str
    fields: tuple[FieldSpec, ...]
    groups: tuple[FieldGroup, ...] = field(init=False, repr=False, compare=False)
    field_names: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "groups", group_fields(self.fields))
        object.__setattr__(self, "field_names", frozenset(f.name for f in self.fields))


# --- Property Filters ---


@dataclass(frozen=True)
class PropertyCondition:
    property: str
    operator: Operator
    value: str


@dataclass(frozen=True)
class PropertyFilter:
    """Fine-grained filter applied after query matching. All parts are AND-ed."""

    modified_after: str | None = None
    modified_before: str | None = None
    created_after: str | None = None
    created_before: str | None = None
    has_property: str | None = None
    not_has_property: str | None = None
    conditions: tuple[PropertyCondition, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "conditions", tuple(self.conditions))


# --- Schema Mappings ---


@dataclass(frozen=True)
class SchemaMapping:
    """A set of field specs bound to a document-selection query."""

    id: str
    query: str
    fields: tuple[FieldSpec, ...]
    name: str = ""
    enabled: bool = True
    property_filter: PropertyFilter | None = None
    groups: tuple[FieldGroup, ...] = field(init=False, repr=False, compare=False)
    field_names_lower: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "groups", group_fields(self.fields))
        object.__setattr__(
            self, "field_names_lower", frozenset(f.name.lower() for f in self.fields)
        )
        if not self.name:
            object.__setattr__(self, "name", self.id)

    @property
    def unique_groups(self) -> tuple[FieldGroup, ...]:
        return tuple(g for g in self.groups if g.is_unique)

    @property
    def has_unique_fields(self) -> bool:
        return any(g.is_unique for g in self.groups)

"""Registry of named types, passed explicitly to the matcher and validator."""

from collections.abc import Iterable, Iterator

from noteschema.errors import SchemaConfigError
from noteschema.schema.model import FieldSpec, FieldType, NamedType, NamedTypeRef


class TypeRegistry:
    """Name -> NamedType lookup with load-time reference checking."""

    def __init__(self, types: Iterable[NamedType] = ()):
        self._types: dict[str, NamedType] = {}
        for named_type in types:
            self.register(named_type)

    def register(self, named_type: NamedType) -> None:
        if named_type.name in self._types:
            raise SchemaConfigError(f"Duplicate named type '{named_type.name}'")
        self._types[named_type.name] = named_type

    def get(self, name: str) -> NamedType | None:
        return self._types.get(name)

    def resolve(self, field_type: FieldType | None) -> NamedType | None:
        """Return the NamedType a field type refers to, or None for primitives."""
        if isinstance(field_type, NamedTypeRef):
            return self._types.get(field_type.name)
        return None

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[NamedType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def check_references(self, fields: Iterable[FieldSpec], location: str) -> None:
        """Raise SchemaConfigError if any field references an undefined named type."""
        for spec in fields:
            for field_type in (spec.type, spec.array_element_type):
                if isinstance(field_type, NamedTypeRef) and field_type.name not in self._types:
                    raise SchemaConfigError(
                        f"Field '{spec.name}' references undefined type '{field_type.name}'",
                        location=location,
                    )

    def validate(self) -> None:
        """Check every registered type's own field references."""
        for named_type in self._types.values():
            self.check_references(named_type.fields, location=f"type '{named_type.name}'")

    def referenced_types(self, fields: Iterable[FieldSpec]) -> list[NamedType]:
        """All named types reachable from the given fields, transitively."""
        result: list[NamedType] = []
        visited: set[str] = set()

        def collect(specs: Iterable[FieldSpec]) -> None:
            for spec in specs:
                for field_type in (spec.type, spec.array_element_type):
                    named_type = self.resolve(field_type)
                    if named_type is not None and named_type.name not in visited:
                        visited.add(named_type.name)
                        result.append(named_type)
                        collect(named_type.fields)

        collect(fields)
        return result

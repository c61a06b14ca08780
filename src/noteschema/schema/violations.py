"""Violation result model.

Violations are ordinary values, never exceptions. Three kinds are warnings;
everything else is an error.
"""

from dataclasses import dataclass
from enum import Enum


class ViolationKind(str, Enum):
    MISSING_REQUIRED = "missing_required"
    MISSING_WARNED = "missing_warned"
    TYPE_MISMATCH = "type_mismatch"
    TYPE_MISMATCH_WARNED = "type_mismatch_warned"
    UNKNOWN_FIELD = "unknown_field"
    PATTERN_MISMATCH = "pattern_mismatch"
    STRING_TOO_SHORT = "string_too_short"
    STRING_TOO_LONG = "string_too_long"
    NUMBER_TOO_SMALL = "number_too_small"
    NUMBER_TOO_LARGE = "number_too_large"
    DATE_TOO_EARLY = "date_too_early"
    DATE_TOO_LATE = "date_too_late"
    ARRAY_TOO_FEW = "array_too_few"
    ARRAY_TOO_MANY = "array_too_many"
    ARRAY_MISSING_VALUE = "array_missing_value"
    DUPLICATE_VALUE = "duplicate_value"
    CROSS_FIELD_VIOLATION = "cross_field_violation"


WARNING_KINDS = frozenset(
    {
        ViolationKind.MISSING_WARNED,
        ViolationKind.TYPE_MISMATCH_WARNED,
        ViolationKind.UNKNOWN_FIELD,
    }
)


class Severity(str, Enum):
    """Filter used by violation views."""

    ALL = "all"
    ERRORS = "errors"
    WARNINGS = "warnings"


@dataclass(frozen=True)
class Violation:
    """One reported deviation of a document from a schema."""

    document_id: str
    schema_id: str
    field_path: str
    kind: ViolationKind
    message: str
    expected: str | None = None
    actual: str | None = None

    @property
    def is_warning(self) -> bool:
        return self.kind in WARNING_KINDS

    def matches(self, severity: Severity) -> bool:
        if severity is Severity.ERRORS:
            return not self.is_warning
        if severity is Severity.WARNINGS:
            return self.is_warning
        return True

    def to_dict(self) -> dict:
        return {
            "document_id": self.document_id,
            "schema_id": self.schema_id,
            "field_path": self.field_path,
            "kind": self.kind.value,
            "message": self.message,
            "expected": self.expected,
            "actual": self.actual,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Violation":
        return cls(
            document_id=data["document_id"],
            schema_id=data["schema_id"],
            field_path=data["field_path"],
            kind=ViolationKind(data["kind"]),
            message=data["message"],
            expected=data.get("expected"),
            actual=data.get("actual"),
        )


@dataclass(frozen=True)
class ViolationBuilder:
    """Stamps document and schema ids onto violations for one validation run."""

    document_id: str
    schema_id: str

    def __call__(
        self,
        field_path: str,
        kind: ViolationKind,
        message: str,
        expected: str | None = None,
        actual: str | None = None,
    ) -> Violation:
        return Violation(
            document_id=self.document_id,
            schema_id=self.schema_id,
            field_path=field_path,
            kind=kind,
            message=message,
            expected=expected,
            actual=actual,
        )

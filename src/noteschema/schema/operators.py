"""Comparison operators shared by field conditions, property filters and cross-field constraints.

Two evaluators live here:

  evaluate()             -> property/condition semantics. equals/not_equals compare
                            string forms, contains tests membership or substrings,
                            ordering operators try numbers, then dates, else False.
  compare_cross_field()  -> constraint semantics. Numbers, then dates, then a
                            lexicographic string comparison. Never False just
                            because a pair is unparseable.
"""

import json
import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class Operator(str, Enum):
    """Operators accepted by conditions and filters."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_OR_EQUAL = "greater_or_equal"
    LESS_OR_EQUAL = "less_or_equal"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @property
    def phrase(self) -> str:
        """Wording used in cross-field violation messages."""
        return _PHRASES.get(self, self.label)

    @property
    def is_comparison(self) -> bool:
        return self in COMPARISON_OPERATORS


_LABELS = {
    Operator.EQUALS: "equals",
    Operator.NOT_EQUALS: "not equals",
    Operator.GREATER_THAN: "greater than",
    Operator.LESS_THAN: "less than",
    Operator.GREATER_OR_EQUAL: ">=",
    Operator.LESS_OR_EQUAL: "<=",
    Operator.CONTAINS: "contains",
    Operator.NOT_CONTAINS: "not contains",
}

_SYMBOLS = {
    Operator.EQUALS: "=",
    Operator.NOT_EQUALS: "!=",
    Operator.GREATER_THAN: ">",
    Operator.LESS_THAN: "<",
    Operator.GREATER_OR_EQUAL: ">=",
    Operator.LESS_OR_EQUAL: "<=",
    Operator.CONTAINS: "contains",
    Operator.NOT_CONTAINS: "!contains",
}

_PHRASES = {
    Operator.EQUALS: "equal to",
    Operator.NOT_EQUALS: "not equal to",
    Operator.GREATER_THAN: "greater than",
    Operator.LESS_THAN: "less than",
    Operator.GREATER_OR_EQUAL: "greater than or equal to",
    Operator.LESS_OR_EQUAL: "less than or equal to",
}

COMPARISON_OPERATORS = frozenset(
    {
        Operator.EQUALS,
        Operator.NOT_EQUALS,
        Operator.GREATER_THAN,
        Operator.LESS_THAN,
        Operator.GREATER_OR_EQUAL,
        Operator.LESS_OR_EQUAL,
    }
)

# Only whole strings count as numbers, so "2024-12-31" is never read as 2024
_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")


# --- Value conversion ---


def to_display_string(value: Any) -> str:
    """Render a frontmatter value the way the note host displays it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ",".join(to_display_string(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def to_number(value: Any) -> float | None:
    """Strict numeric parse. Booleans are never numbers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        trimmed = value.strip()
        if _NUMBER_RE.match(trimmed):
            return float(trimmed)
    return None


def to_timestamp(value: Any) -> float | None:
    """Parse a date-like value into a UTC timestamp.

    Naive values are read as UTC so date-only strings compare consistently.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


# --- Comparison ---


def _compare(a: Any, b: Any, operator: Operator) -> bool:
    if operator is Operator.EQUALS:
        return a == b
    if operator is Operator.NOT_EQUALS:
        return a != b
    if operator is Operator.GREATER_THAN:
        return a > b
    if operator is Operator.LESS_THAN:
        return a < b
    if operator is Operator.GREATER_OR_EQUAL:
        return a >= b
    if operator is Operator.LESS_OR_EQUAL:
        return a <= b
    raise ValueError(f"Operator {operator.value} is not a comparison operator")


def _contains(value: Any, comparand: str) -> bool:
    if isinstance(value, (list, tuple)):
        return any(to_display_string(v) == comparand for v in value)
    return comparand in to_display_string(value)


def evaluate(value: Any, operator: Operator | str, comparand: str) -> bool:
    """Evaluate a property operator against a value and a string comparand."""
    operator = Operator(operator)

    if operator is Operator.CONTAINS:
        return _contains(value, comparand)
    if operator is Operator.NOT_CONTAINS:
        return not _contains(value, comparand)

    if operator is Operator.EQUALS:
        return to_display_string(value) == comparand
    if operator is Operator.NOT_EQUALS:
        return to_display_string(value) != comparand

    return evaluate_ordering(value, operator, comparand)


def evaluate_ordering(value: Any, operator: Operator, comparand: str) -> bool:
    """Numeric comparison, falling back to dates. Unparseable pairs are False."""
    left = to_number(value)
    right = to_number(comparand)
    if left is not None and right is not None:
        return _compare(left, right, operator)

    left_ts = to_timestamp(value)
    right_ts = to_timestamp(comparand)
    if left_ts is not None and right_ts is not None:
        return _compare(left_ts, right_ts, operator)

    return False


def compare_cross_field(value: Any, other: Any, operator: Operator | str) -> bool:
    """Compare two field values for a cross-field constraint."""
    operator = Operator(operator)

    left = to_number(value)
    right = to_number(other)
    if left is not None and right is not None:
        return _compare(left, right, operator)

    left_ts = to_timestamp(value)
    right_ts = to_timestamp(other)
    if left_ts is not None and right_ts is not None:
        return _compare(left_ts, right_ts, operator)

    return _compare(to_display_string(value), to_display_string(other), operator)

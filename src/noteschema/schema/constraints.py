"""Per-type constraint checks.

Each check runs only on a value that already matched one specific variant.
Broken configuration degrades quietly: a malformed regex or an unparseable
date bound behaves as if the constraint were absent.
"""

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from noteschema.schema.model import (
    ArrayConstraints,
    CrossFieldConstraint,
    DateConstraints,
    NumberConstraints,
    StringConstraints,
)
from noteschema.schema.operators import compare_cross_field, to_display_string, to_timestamp
from noteschema.schema.violations import Violation, ViolationBuilder, ViolationKind
from noteschema.utils import LowerKeyMap


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern | None:
    try:
        return re.compile(pattern)
    except re.error:
        return None


def check_string(
    value: str,
    constraints: StringConstraints,
    path: str,
    report: ViolationBuilder,
) -> list[Violation]:
    violations: list[Violation] = []

    if constraints.pattern:
        regex = _compile(constraints.pattern)
        if regex is not None and regex.search(value) is None:
            violations.append(
                report(
                    path,
                    ViolationKind.PATTERN_MISMATCH,
                    f"Pattern mismatch: {path} does not match /{constraints.pattern}/",
                    expected=constraints.pattern,
                    actual=value,
                )
            )

    length = len(value)
    if constraints.min_length is not None and length < constraints.min_length:
        violations.append(
            report(
                path,
                ViolationKind.STRING_TOO_SHORT,
                f"String too short: {path} has {length} chars (min: {constraints.min_length})",
                expected=f">= {constraints.min_length}",
                actual=str(length),
            )
        )

    if constraints.max_length is not None and length > constraints.max_length:
        violations.append(
            report(
                path,
                ViolationKind.STRING_TOO_LONG,
                f"String too long: {path} has {length} chars (max: {constraints.max_length})",
                expected=f"<= {constraints.max_length}",
                actual=str(length),
            )
        )

    return violations


def check_number(
    value: float,
    constraints: NumberConstraints,
    path: str,
    report: ViolationBuilder,
) -> list[Violation]:
    violations: list[Violation] = []
    shown = to_display_string(value)

    if constraints.min is not None and value < constraints.min:
        bound = to_display_string(constraints.min)
        violations.append(
            report(
                path,
                ViolationKind.NUMBER_TOO_SMALL,
                f"Number too small: {path} is {shown} (min: {bound})",
                expected=f">= {bound}",
                actual=shown,
            )
        )

    if constraints.max is not None and value > constraints.max:
        bound = to_display_string(constraints.max)
        violations.append(
            report(
                path,
                ViolationKind.NUMBER_TOO_LARGE,
                f"Number too large: {path} is {shown} (max: {bound})",
                expected=f"<= {bound}",
                actual=shown,
            )
        )

    return violations


def check_date(
    value: Any,
    constraints: DateConstraints,
    path: str,
    report: ViolationBuilder,
) -> list[Violation]:
    violations: list[Violation] = []

    timestamp = to_timestamp(value)
    if timestamp is None:
        # Not a usable date; the type check reports it
        return violations

    shown = datetime.fromtimestamp(timestamp, tz=timezone.utc).date().isoformat()

    if constraints.min:
        min_ts = to_timestamp(constraints.min)
        if min_ts is not None and timestamp < min_ts:
            violations.append(
                report(
                    path,
                    ViolationKind.DATE_TOO_EARLY,
                    f"Date too early: {path} is {shown} (min: {constraints.min})",
                    expected=f">= {constraints.min}",
                    actual=shown,
                )
            )

    if constraints.max:
        max_ts = to_timestamp(constraints.max)
        if max_ts is not None and timestamp > max_ts:
            violations.append(
                report(
                    path,
                    ViolationKind.DATE_TOO_LATE,
                    f"Date too late: {path} is {shown} (max: {constraints.max})",
                    expected=f"<= {constraints.max}",
                    actual=shown,
                )
            )

    return violations


def check_array(
    value: list | tuple,
    constraints: ArrayConstraints,
    path: str,
    report: ViolationBuilder,
) -> list[Violation]:
    violations: list[Violation] = []
    count = len(value)

    if constraints.min_items is not None and count < constraints.min_items:
        violations.append(
            report(
                path,
                ViolationKind.ARRAY_TOO_FEW,
                f"Array too small: {path} has {count} items (min: {constraints.min_items})",
                expected=f">= {constraints.min_items}",
                actual=str(count),
            )
        )

    if constraints.max_items is not None and count > constraints.max_items:
        violations.append(
            report(
                path,
                ViolationKind.ARRAY_TOO_MANY,
                f"Array too large: {path} has {count} items (max: {constraints.max_items})",
                expected=f"<= {constraints.max_items}",
                actual=str(count),
            )
        )

    if constraints.contains:
        present = {to_display_string(v) for v in value}
        for required in constraints.contains:
            if required not in present:
                violations.append(
                    report(
                        path,
                        ViolationKind.ARRAY_MISSING_VALUE,
                        f'Array missing value: {path} must contain "{required}"',
                        expected=required,
                    )
                )

    return violations


def check_cross_field(
    value: Any,
    constraint: CrossFieldConstraint,
    path: str,
    report: ViolationBuilder,
    frontmatter: Mapping[str, Any],
    key_map: LowerKeyMap,
) -> list[Violation]:
    """Compare a value with another top-level field of the same document."""
    other_key = key_map.lookup(constraint.field)
    if other_key is None:
        return []

    other_value = frontmatter[other_key]
    if other_value is None:
        return []

    if compare_cross_field(value, other_value, constraint.operator):
        return []

    phrase = constraint.operator.phrase
    return [
        report(
            path,
            ViolationKind.CROSS_FIELD_VIOLATION,
            f"Cross-field constraint failed: {path} must be {phrase} {constraint.field}",
            expected=f"{phrase} {constraint.field}",
            actual=to_display_string(value),
        )
    ]

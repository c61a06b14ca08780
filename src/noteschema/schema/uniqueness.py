"""Corpus-wide uniqueness checking for fields flagged `unique`.

One tracker instance covers one pass over a schema's candidate documents:

  observe("a.md", {isbn: "1"})  -> []                        first occurrence
  observe("b.md", {isbn: "1"})  -> [dup(a.md), dup(b.md)]    bucket re-issued
  observe("c.md", {isbn: "1"})  -> [dup(a), dup(b), dup(c)]  messages updated

Callers replace prior duplicate_value violations per (document, schema, field),
so the latest message for a document always lists every other member.
"""

import json
from collections.abc import Mapping
from datetime import date
from typing import Any

from noteschema.schema.model import SchemaMapping
from noteschema.schema.operators import to_display_string
from noteschema.schema.violations import Violation, ViolationBuilder, ViolationKind
from noteschema.utils import LowerKeyMap


def normalize_unique_value(value: Any) -> str:
    """Canonical string used to bucket values for duplicate detection."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return to_display_string(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        ordered = sorted(value, key=lambda item: json.dumps(item, sort_keys=True, default=str))
        return json.dumps(ordered, default=str)
    if isinstance(value, Mapping):
        return json.dumps(value, default=str)
    return str(value)


class UniquenessTracker:
    """Buckets unique-field values of one schema's documents."""

    def __init__(self, schema: SchemaMapping):
        self.schema = schema
        self._groups = schema.unique_groups
        self._seen: dict[tuple[str, str], list[str]] = {}

    @property
    def active(self) -> bool:
        return bool(self._groups)

    def observe(self, document_id: str, frontmatter: Mapping[str, Any] | None) -> list[Violation]:
        """Record a document's unique values and return any duplicate violations to (re)issue."""
        if not self._groups or not frontmatter:
            return []

        key_map = LowerKeyMap(frontmatter)
        violations: list[Violation] = []

        for group in self._groups:
            actual_key = key_map.lookup(group.name)
            if actual_key is None:
                continue
            value = frontmatter[actual_key]
            if value is None:
                continue

            members = self._seen.setdefault((group.name, normalize_unique_value(value)), [])
            if document_id in members:
                continue
            members.append(document_id)

            if len(members) > 1:
                violations.extend(self._bucket_violations(group.name, value, members))

        return violations

    def duplicates(self) -> dict[tuple[str, str], list[str]]:
        """Buckets with more than one member, keyed by (field, normalized value)."""
        return {key: list(members) for key, members in self._seen.items() if len(members) > 1}

    def _bucket_violations(self, field_name: str, value: Any, members: list[str]) -> list[Violation]:
        shown = to_display_string(value)
        violations = []
        for member in members:
            others = ", ".join(m for m in members if m != member)
            report = ViolationBuilder(document_id=member, schema_id=self.schema.id)
            violations.append(
                report(
                    field_name,
                    ViolationKind.DUPLICATE_VALUE,
                    f'Duplicate value: {field_name} "{shown}" is also used by {others}',
                    expected="unique value",
                    actual=shown,
                )
            )
        return violations

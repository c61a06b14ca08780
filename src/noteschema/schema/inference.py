"""Schema inference for noteschema.

Two ways to bootstrap a schema instead of authoring one from scratch:

  template  -> extract_schema_from_template(): one required field per key
  corpus    -> infer_schema(): field frequencies across matching notes

Frequency thresholds for corpus inference:
  - 95%+ present  -> required field
  - 25%+ present  -> optional field
  - Below 25%     -> excluded from suggestion (but noted)
"""

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from noteschema.schema.matcher import ISO_DATE_RE
from noteschema.schema.model import FieldSpec, PrimitiveKind, is_primitive
from noteschema.schema.operators import to_display_string
from noteschema.schema.validator import EXCLUDED_FIELDS

# Host property widgets -> field types, used when a template value is empty
NATIVE_TYPE_MAP = {
    "text": "string",
    "number": "number",
    "checkbox": "boolean",
    "date": "date",
    "datetime": "date",
    "tags": "array",
    "aliases": "array",
    "multitext": "array",
}


# --- Type Inference ---


def infer_field_type(value: Any) -> str:
    """Infer a primitive type name from a frontmatter value."""
    if value is None:
        return PrimitiveKind.UNKNOWN.value
    if isinstance(value, bool):
        return PrimitiveKind.BOOLEAN.value
    if isinstance(value, str):
        if ISO_DATE_RE.match(value):
            return PrimitiveKind.DATE.value
        return PrimitiveKind.STRING.value
    if isinstance(value, (int, float)):
        return PrimitiveKind.NUMBER.value
    if isinstance(value, date):
        return PrimitiveKind.DATE.value
    if isinstance(value, (list, tuple)):
        return PrimitiveKind.ARRAY.value
    if isinstance(value, Mapping):
        return PrimitiveKind.OBJECT.value
    return PrimitiveKind.UNKNOWN.value


def extract_schema_from_template(
    frontmatter: Mapping[str, Any] | None,
    native_types: Mapping[str, str] | None = None,
) -> list[FieldSpec]:
    """Build one required field per template key.

    Args:
        frontmatter: The template note's frontmatter.
        native_types: Optional property -> host widget name hints ("text", "checkbox", ...)
            used when the template leaves a value empty.

    Returns:
        Field specs in template key order.
    """
    if not frontmatter:
        return []

    hints = native_types or {}
    fields: list[FieldSpec] = []
    for key, value in frontmatter.items():
        if key in EXCLUDED_FIELDS:
            continue
        type_name = infer_field_type(value)
        if type_name == PrimitiveKind.UNKNOWN.value:
            type_name = NATIVE_TYPE_MAP.get(hints.get(key, ""), type_name)
        fields.append(FieldSpec(name=str(key), type=type_name, required=True))
    return fields


def format_type_display(spec: FieldSpec) -> str:
    """Short type label: `person[]` for typed arrays, otherwise the type name."""
    if is_primitive(spec.type, PrimitiveKind.ARRAY) and spec.array_element_type is not None:
        return f"{spec.array_element_type.name}[]"
    return spec.type_name


def field_to_dict(spec: FieldSpec) -> dict:
    """Authored-file representation of a field, omitting defaults."""
    data: dict[str, Any] = {"name": spec.name, "type": spec.type_name}
    if spec.required:
        data["required"] = True
    if spec.warn:
        data["warn"] = True
    if spec.unique:
        data["unique"] = True
    if spec.array_element_type is not None:
        data["array_element_type"] = spec.array_element_type.name
    return data


# --- Corpus Inference ---


@dataclass
class FieldFrequency:
    """Frequency analysis for a single frontmatter key across notes."""

    name: str
    count: int  # notes containing this key
    total: int  # total notes analyzed
    percentage: float
    type_counts: dict[str, int] = field(default_factory=dict)
    sample_values: list[str] = field(default_factory=list)

    @property
    def dominant_type(self) -> str:
        concrete = {t: c for t, c in self.type_counts.items() if t != PrimitiveKind.UNKNOWN.value}
        if not concrete:
            return PrimitiveKind.UNKNOWN.value
        return Counter(concrete).most_common(1)[0][0]


@dataclass
class InferenceResult:
    """Frequency analysis plus the suggested field list."""

    notes_analyzed: int
    field_frequencies: list[FieldFrequency]
    suggested_fields: list[FieldSpec]
    suggested_required: list[str]
    suggested_optional: list[str]
    excluded: list[str]  # Below threshold


def infer_schema(
    notes: list[Mapping[str, Any] | None],
    required_threshold: float = 0.95,
    optional_threshold: float = 0.25,
    max_sample_values: int = 5,
) -> InferenceResult:
    """Analyze the frontmatter of several notes and suggest schema fields.

    Keys present in a high share of notes become required; less frequent ones
    become optional. Each suggested field takes the most common concrete type
    seen for that key.
    """
    total = len(notes)
    if total == 0:
        return InferenceResult(
            notes_analyzed=0,
            field_frequencies=[],
            suggested_fields=[],
            suggested_required=[],
            suggested_optional=[],
            excluded=[],
        )

    frequencies = analyze_keys(notes, total, max_sample_values)

    suggested_fields: list[FieldSpec] = []
    suggested_required: list[str] = []
    suggested_optional: list[str] = []
    excluded: list[str] = []

    for freq in frequencies:
        if freq.percentage >= required_threshold:
            suggested_required.append(freq.name)
            suggested_fields.append(FieldSpec(name=freq.name, type=freq.dominant_type, required=True))
        elif freq.percentage >= optional_threshold:
            suggested_optional.append(freq.name)
            suggested_fields.append(FieldSpec(name=freq.name, type=freq.dominant_type))
        else:
            excluded.append(freq.name)

    return InferenceResult(
        notes_analyzed=total,
        field_frequencies=frequencies,
        suggested_fields=suggested_fields,
        suggested_required=suggested_required,
        suggested_optional=suggested_optional,
        excluded=excluded,
    )


def analyze_keys(
    notes: list[Mapping[str, Any] | None],
    total: int,
    max_sample_values: int,
) -> list[FieldFrequency]:
    """Count key frequencies and value types across notes, most frequent first."""
    key_counter: Counter = Counter()
    type_counters: dict[str, Counter] = {}
    samples: dict[str, list[str]] = {}

    for frontmatter in notes:
        for key, value in (frontmatter or {}).items():
            if key in EXCLUDED_FIELDS:
                continue
            key = str(key)
            key_counter[key] += 1
            type_counters.setdefault(key, Counter())[infer_field_type(value)] += 1
            key_samples = samples.setdefault(key, [])
            shown = to_display_string(value)
            if shown and shown not in key_samples and len(key_samples) < max_sample_values:
                key_samples.append(shown)

    return [
        FieldFrequency(
            name=key,
            count=count,
            total=total,
            percentage=count / total,
            type_counts=dict(type_counters[key]),
            sample_values=samples.get(key, []),
        )
        for key, count in key_counter.most_common()
    ]

"""Small shared helpers."""

from collections.abc import Mapping
from datetime import date
from typing import Any


class LowerKeyMap:
    """Case-insensitive key lookup over a mapping, built once in O(n).

    Maps lowercase key -> actual key. When two keys differ only by case the
    first one wins.
    """

    def __init__(self, data: Mapping[str, Any] | None):
        self._keys: dict[str, str] = {}
        for key in data or {}:
            self._keys.setdefault(str(key).lower(), key)

    def lookup(self, key: str) -> str | None:
        return self._keys.get(key.lower())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._keys


def actual_type_name(value: Any) -> str:
    """Describe a runtime value using the schema type vocabulary."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, date):
        return "date"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def normalize_folder(path: str) -> str:
    """Forward slashes, no leading or trailing slash. The root folder is ''."""
    return path.replace("\\", "/").strip().strip("/")


def parent_folder(document_id: str) -> str:
    """Direct parent folder of a vault-relative document path."""
    normalized = document_id.replace("\\", "/")
    if "/" not in normalized:
        return ""
    return normalized.rsplit("/", 1)[0]

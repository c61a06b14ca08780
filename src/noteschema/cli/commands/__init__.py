"""CLI commands for noteschema."""

from . import index, infer, query, validate

__all__ = [
    "index",
    "infer",
    "query",
    "validate",
]

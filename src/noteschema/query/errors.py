"""
Custom exceptions for query parsing.
"""

from noteschema.errors import NoteSchemaError


class QueryError(NoteSchemaError):
    """Base exception for all query-related errors."""

    pass


class QuerySyntaxError(QueryError):
    """Raised when a query cannot be tokenized or a term is malformed."""

    def __init__(self, message: str, column: int | None = None):
        self.column = column
        location = f" at column {column}" if column is not None else ""
        super().__init__(f"{message}{location}")

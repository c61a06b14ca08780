"""
Custom exceptions for noteschema.

Malformed documents never raise; these are reserved for configuration and
programmer errors.
"""


class NoteSchemaError(Exception):
    """Base exception for all noteschema errors."""

    pass


class SchemaConfigError(NoteSchemaError):
    """Raised when a schema or named type definition is invalid.

    Surfaced at load time (unknown type reference, duplicate type name,
    unsupported operator) rather than during validation.
    """

    def __init__(self, message: str, location: str | None = None):
        self.location = location
        if location:
            message = f"{location}: {message}"
        super().__init__(message)


class DocumentError(NoteSchemaError):
    """Base exception for reading or writing notes and state files."""

    pass


class FileWriteError(DocumentError):
    """Raised when an atomic write fails."""

    pass


class FrontmatterParseError(DocumentError):
    """Raised when a note's frontmatter block cannot be parsed."""

    pass

"""Main CLI entry point for noteschema."""  # pragma: no cover

from noteschema.cli.app import app  # pragma: no cover

# Register commands
from noteschema.cli.commands import index, infer, query, validate  # noqa: F401  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()

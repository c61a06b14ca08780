"""Command line interface for noteschema."""

"""noteschema - structural schema validation for markdown note frontmatter."""

__version__ = "0.1.0"

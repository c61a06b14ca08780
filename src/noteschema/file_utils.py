"""Utilities for file operations."""

import re
from pathlib import Path
from typing import Any

import aiofiles
import frontmatter
import yaml
from loguru import logger

from noteschema.errors import FileWriteError, FrontmatterParseError

# Opening fence, optional YAML lines, closing fence; leading whitespace is ignored
FRONTMATTER_BLOCK = re.compile(
    r"\A\s*-{3,}[ \t]*\r?\n(?:.*?\r?\n)?-{3,}[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)


async def write_file_atomic(path: Path | str, content: str) -> None:
    """
    Write file with atomic operation using temporary file.

    Args:
        path: Target file path (Path or string)
        content: Content to write

    Raises:
        FileWriteError: If write operation fails
    """
    path_obj = Path(path) if isinstance(path, str) else path
    temp_path = path_obj.with_suffix(path_obj.suffix + ".tmp")

    try:
        async with aiofiles.open(temp_path, mode="w", encoding="utf-8") as f:
            await f.write(content)

        # Atomic rename
        temp_path.replace(path_obj)
        logger.debug("Wrote file atomically", path=str(path_obj), content_length=len(content))
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        logger.error("Failed to write file", path=str(path_obj), error=str(e))
        raise FileWriteError(f"Failed to write file {path}: {e}") from e


async def read_file(path: Path | str) -> str:
    """Read a UTF-8 text file without blocking the event loop."""
    async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
        return await f.read()


def has_frontmatter(content: str) -> bool:
    """True when the note opens with a fenced block: `---` lines before and after the YAML.

    A `---` inside a line (`title: a---b`) does not close the block, so such a
    note is treated as having no frontmatter rather than as invalid YAML.
    """
    return bool(content) and FRONTMATTER_BLOCK.match(content) is not None


def parse_note(content: str) -> tuple[dict[str, Any] | None, str]:
    """
    Split a note into frontmatter and body.

    Args:
        content: Full markdown text

    Returns:
        (frontmatter, body). Frontmatter is None when the note has no block.

    Raises:
        FrontmatterParseError: If the frontmatter block is not a valid YAML mapping
    """
    if not has_frontmatter(content):
        return None, content

    try:
        post = frontmatter.loads(content)
    except (yaml.YAMLError, TypeError, ValueError) as e:
        raise FrontmatterParseError(f"Invalid YAML in frontmatter: {e}") from e

    return dict(post.metadata), post.content

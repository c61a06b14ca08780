"""Tests for file utilities."""

from datetime import date
from pathlib import Path

import pytest

from noteschema.errors import DocumentError, FileWriteError, FrontmatterParseError
from noteschema.file_utils import has_frontmatter, parse_note, read_file, write_file_atomic


@pytest.mark.asyncio
async def test_write_file_atomic(tmp_path: Path):
    """Test atomic file writing."""
    test_file = tmp_path / "test.txt"
    content = "test content"

    await write_file_atomic(test_file, content)
    assert test_file.exists()
    assert test_file.read_text(encoding="utf-8") == content

    # Temp file should be cleaned up
    assert not (tmp_path / "test.txt.tmp").exists()


@pytest.mark.asyncio
async def test_write_file_atomic_overwrites(tmp_path: Path):
    test_file = tmp_path / "state.json"
    await write_file_atomic(str(test_file), "old")
    await write_file_atomic(test_file, "new")

    assert await read_file(test_file) == "new"


@pytest.mark.asyncio
async def test_write_file_atomic_error(tmp_path: Path):
    """Test atomic write error handling."""
    # Try to write to a directory that doesn't exist
    test_file = tmp_path / "nonexistent" / "test.txt"

    with pytest.raises(FileWriteError):
        await write_file_atomic(test_file, "test content")


def test_write_error_is_a_document_error():
    assert issubclass(FileWriteError, DocumentError)
    assert issubclass(FrontmatterParseError, DocumentError)


def test_has_frontmatter():
    """Test frontmatter detection."""
    assert has_frontmatter("---\ntitle: Test\n---\ncontent")
    assert has_frontmatter("  ---\ntitle: Test\n---")

    assert not has_frontmatter("")
    assert not has_frontmatter("plain content")
    assert not has_frontmatter("---\nnever closed")
    assert not has_frontmatter("# Heading\n---\ntitle: x\n---")


def test_has_frontmatter_needs_fences_on_their_own_lines():
    assert has_frontmatter("---\n---\nBody")
    assert has_frontmatter("---\r\ntitle: Test\r\n---\r\nBody")
    assert has_frontmatter("---\ntitle: Test\n----  \nBody")

    assert not has_frontmatter("---\ntitle: a---b\n")
    assert not has_frontmatter("---title: x\n---\n")
    assert not has_frontmatter("---\ntitle: x\n---more\n")


def test_parse_note_with_inline_dashes_has_no_frontmatter():
    content = "---\nsee a---b for details\n"

    assert parse_note(content) == (None, content)


def test_parse_note():
    """Test splitting a note into frontmatter and body."""
    metadata, body = parse_note("---\ntitle: Dune\ndue: 2024-06-01\ntags: [book]\n---\nBody text")

    assert metadata == {"title": "Dune", "due": date(2024, 6, 1), "tags": ["book"]}
    assert body == "Body text"


def test_parse_note_without_frontmatter():
    assert parse_note("Just a body") == (None, "Just a body")


def test_parse_note_empty_block():
    metadata, body = parse_note("---\n---\nBody")

    assert metadata == {}
    assert body == "Body"


@pytest.mark.parametrize(
    "content",
    [
        "---\ntitle: [unclosed\n---\nbody",
        "---\ntitle: a: b: c\n---\nbody",
    ],
)
def test_parse_note_invalid_yaml(content):
    with pytest.raises(FrontmatterParseError):
        parse_note(content)

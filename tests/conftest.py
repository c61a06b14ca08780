"""Common test fixtures."""

from datetime import datetime, timezone

import pytest

from noteschema.documents import Document, InMemoryDocumentStore, MemoryBlobStore
from noteschema.query.tag_index import TagIndex


def make_document(
    document_id: str,
    frontmatter: dict | None = None,
    body: str = "",
    created: datetime | None = None,
    modified: datetime | None = None,
) -> Document:
    """Build a document the way the filesystem store does, tags included."""
    return Document.from_content(document_id, frontmatter, body, created=created, modified=modified)


def utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


@pytest.fixture
def make_doc():
    """Factory fixture for documents with tags extracted from frontmatter and body."""
    return make_document


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def library_store() -> InMemoryDocumentStore:
    """A small vault: books in Library/, one draft, a journal entry and a root note."""
    return InMemoryDocumentStore(
        [
            make_document(
                "Library/Dune.md",
                {"title": "Dune", "isbn": "978-0441013593", "tags": ["book/fiction"]},
                modified=utc(2024, 3, 1),
                created=utc(2024, 1, 1),
            ),
            make_document(
                "Library/Sapiens.md",
                {"title": "Sapiens", "isbn": "978-0062316097", "tags": ["book"]},
                modified=utc(2024, 5, 1),
                created=utc(2024, 2, 1),
            ),
            make_document(
                "Library/Drafts/Untitled.md",
                {"title": "Untitled", "tags": ["book", "draft"]},
                modified=utc(2024, 6, 1),
            ),
            make_document(
                "Journal/2024-06-01.md",
                {"mood": "good"},
                body="Finished reading #book/fiction today.",
                modified=utc(2024, 6, 1),
            ),
            make_document("Inbox.md", None, body="Loose thoughts #idea"),
        ]
    )


@pytest.fixture
def tag_index(library_store, blobs) -> TagIndex:
    return TagIndex(library_store, blobs, debounce_seconds=0)


@pytest.fixture
def books_schema_data() -> dict:
    """Authored schema file content in the camelCase form the settings file uses."""
    return {
        "customTypes": [
            {
                "name": "author",
                "fields": [
                    {"name": "name", "type": "string", "required": True},
                    {"name": "born", "type": "date"},
                ],
            }
        ],
        "schemaMappings": [
            {
                "id": "books",
                "name": "Books",
                "query": "Library/* and #book not #draft",
                "fields": [
                    {"name": "title", "type": "string", "required": True},
                    {
                        "name": "isbn",
                        "type": "string",
                        "unique": True,
                        "stringConstraints": {"pattern": "^[0-9-]+$"},
                    },
                    {"name": "author", "type": "author"},
                    {"name": "tags", "type": "array"},
                ],
            }
        ],
    }

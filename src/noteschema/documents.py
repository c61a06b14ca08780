"""Documents and the stores that provide them.

The engine only depends on two small protocols:

  DocumentStore  -> list_documents(), get_document(id), documents_in_folder()
  BlobStore      -> async read(name), async write(name, content)

`FileSystemDocumentStore` and `FileBlobStore` back them with a vault directory;
`InMemoryDocumentStore` and `MemoryBlobStore` serve embedding and tests.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from noteschema.errors import FrontmatterParseError
from noteschema.file_utils import parse_note, read_file, write_file_atomic
from noteschema.utils import LowerKeyMap, normalize_folder, parent_folder

FENCED_CODE_RE = re.compile(r"^(```|~~~).*?^\1", re.MULTILINE | re.DOTALL)
INLINE_CODE_RE = re.compile(r"`[^`\n]*`")
INLINE_TAG_RE = re.compile(r"(?<![^\s(\[])#([\w/-]+)")
NUMERIC_TAG_RE = re.compile(r"^[\d/]+$")


# --- Tag Extraction ---


def _clean_tag(tag: str) -> str:
    return tag.strip().lstrip("#").strip("/")


def frontmatter_tags(frontmatter: Mapping[str, Any] | None) -> list[str]:
    """Tags declared in frontmatter: a list, or a comma/space separated string."""
    if not frontmatter:
        return []

    key_map = LowerKeyMap(frontmatter)
    key = key_map.lookup("tags") or key_map.lookup("tag")
    if key is None:
        return []

    raw = frontmatter[key]
    if isinstance(raw, str):
        items: Iterable[Any] = re.split(r"[,\s]+", raw)
    elif isinstance(raw, (list, tuple)):
        items = raw
    else:
        return []

    tags = []
    for item in items:
        if item is None:
            continue
        tag = _clean_tag(str(item))
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def inline_tags(body: str) -> list[str]:
    """`#tag` annotations in the body, ignoring code and pure-number tags."""
    if not body:
        return []

    text = FENCED_CODE_RE.sub("", body)
    text = INLINE_CODE_RE.sub("", text)

    tags = []
    for match in INLINE_TAG_RE.finditer(text):
        tag = _clean_tag(match.group(1))
        if not tag or NUMERIC_TAG_RE.match(tag):
            continue
        if tag not in tags:
            tags.append(tag)
    return tags


def extract_tags(frontmatter: Mapping[str, Any] | None, body: str = "") -> tuple[str, ...]:
    tags = frontmatter_tags(frontmatter)
    for tag in inline_tags(body):
        if tag not in tags:
            tags.append(tag)
    return tuple(tags)


# --- Documents ---


@dataclass
class Document:
    """A note with its parsed frontmatter and tags.

    `id` is the vault-relative path with forward slashes (`Library/Dune.md`).
    `tags` are stored without the leading `#`.
    """

    id: str
    frontmatter: dict[str, Any] | None = None
    tags: tuple[str, ...] = ()
    created: datetime | None = None
    modified: datetime | None = None

    def __post_init__(self):
        self.id = self.id.replace("\\", "/")
        self.tags = tuple(_clean_tag(t) for t in self.tags if _clean_tag(t))

    @classmethod
    def from_content(
        cls,
        document_id: str,
        frontmatter: dict[str, Any] | None,
        body: str = "",
        created: datetime | None = None,
        modified: datetime | None = None,
    ) -> "Document":
        return cls(
            id=document_id,
            frontmatter=frontmatter,
            tags=extract_tags(frontmatter, body),
            created=created,
            modified=modified,
        )

    @property
    def folder(self) -> str:
        return parent_folder(self.id)

    @property
    def mtime(self) -> float:
        return self.modified.timestamp() if self.modified else 0.0


def in_folder(document: Document, folder: str, recursive: bool = False) -> bool:
    folder = normalize_folder(folder)
    if not recursive:
        return document.folder == folder
    return not folder or document.id.startswith(f"{folder}/")


# --- Protocols ---


class DocumentStore(Protocol):
    def list_documents(self) -> Iterable[Document]: ...

    def get_document(self, document_id: str) -> Document | None: ...

    def documents_in_folder(self, folder: str, recursive: bool = False) -> Iterable[Document]: ...


class BlobStore(Protocol):
    async def read(self, name: str) -> str:
        """Return the blob's content. Raises FileNotFoundError when absent."""
        ...

    async def write(self, name: str, content: str) -> None: ...


# --- In-memory implementations ---


class InMemoryDocumentStore:
    """Dict-backed document store."""

    def __init__(self, documents: Iterable[Document] = ()):
        self._documents: dict[str, Document] = {}
        for document in documents:
            self.put(document)

    def put(self, document: Document) -> None:
        self._documents[document.id] = document

    def remove(self, document_id: str) -> Document | None:
        return self._documents.pop(document_id, None)

    def rename(self, old_id: str, new_id: str) -> Document | None:
        document = self._documents.pop(old_id, None)
        if document is None:
            return None
        document.id = new_id
        self._documents[new_id] = document
        return document

    def list_documents(self) -> list[Document]:
        return [self._documents[key] for key in sorted(self._documents)]

    def get_document(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def documents_in_folder(self, folder: str, recursive: bool = False) -> list[Document]:
        return [d for d in self.list_documents() if in_folder(d, folder, recursive)]

    def __len__(self) -> int:
        return len(self._documents)


class MemoryBlobStore:
    """Dict-backed blob store."""

    def __init__(self):
        self.blobs: dict[str, str] = {}

    async def read(self, name: str) -> str:
        if name not in self.blobs:
            raise FileNotFoundError(name)
        return self.blobs[name]

    async def write(self, name: str, content: str) -> None:
        self.blobs[name] = content


# --- Filesystem implementations ---


def _timestamps(path: Path) -> tuple[datetime, datetime]:
    stat = path.stat()
    created_ts = getattr(stat, "st_birthtime", stat.st_ctime)
    return (
        datetime.fromtimestamp(created_ts, tz=timezone.utc),
        datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
    )


class FileSystemDocumentStore:
    """Markdown notes under a vault directory, scanned lazily and cached."""

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self._documents: dict[str, Document] | None = None

    def scan(self) -> dict[str, Document]:
        documents: dict[str, Document] = {}
        for path in sorted(self.root.rglob("*.md")):
            relative = path.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            document = self._load(relative.as_posix())
            if document is not None:
                documents[document.id] = document

        logger.debug(f"Scanned {len(documents)} notes", root=str(self.root))
        self._documents = documents
        return documents

    def _load(self, document_id: str) -> Document | None:
        path = self.root / document_id
        try:
            content = path.read_text(encoding="utf-8")
            created, modified = _timestamps(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read note {document_id}: {e}")
            return None

        try:
            metadata, body = parse_note(content)
        except FrontmatterParseError as e:
            logger.warning(f"Treating {document_id} as having no frontmatter: {e}")
            metadata, body = None, content

        return Document.from_content(
            document_id, metadata, body, created=created, modified=modified
        )

    @property
    def documents(self) -> dict[str, Document]:
        if self._documents is None:
            return self.scan()
        return self._documents

    def list_documents(self) -> list[Document]:
        return [self.documents[key] for key in sorted(self.documents)]

    def get_document(self, document_id: str) -> Document | None:
        return self.documents.get(document_id)

    def documents_in_folder(self, folder: str, recursive: bool = False) -> list[Document]:
        return [d for d in self.list_documents() if in_folder(d, folder, recursive)]

    def refresh(self, document_id: str) -> Document | None:
        """Re-read one note from disk. Returns None (and forgets it) when it is gone."""
        document = self._load(document_id) if (self.root / document_id).is_file() else None
        if document is None:
            self.forget(document_id)
            return None
        self.documents[document_id] = document
        return document

    def forget(self, document_id: str) -> None:
        self.documents.pop(document_id, None)

    def rename(self, old_id: str, new_id: str) -> Document | None:
        self.forget(old_id)
        return self.refresh(new_id)


class FileBlobStore:
    """Named text blobs in a state directory, written atomically."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    async def read(self, name: str) -> str:
        return await read_file(self.directory / name)

    async def write(self, name: str, content: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        await write_file_atomic(self.directory / name, content)

"""Tests for noteschema.documents -- tag extraction and the vault-backed stores."""

from pathlib import Path

import pytest

from noteschema.documents import (
    Document,
    FileBlobStore,
    FileSystemDocumentStore,
    InMemoryDocumentStore,
    extract_tags,
    frontmatter_tags,
    in_folder,
    inline_tags,
)


def write_note(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


class TestFrontmatterTags:
    def test_list(self):
        assert frontmatter_tags({"tags": ["book", "#fiction"]}) == ["book", "fiction"]

    def test_string_is_split(self):
        assert frontmatter_tags({"tags": "book, fiction  draft"}) == ["book", "fiction", "draft"]

    def test_singular_key_and_case(self):
        assert frontmatter_tags({"Tag": "idea"}) == ["idea"]

    def test_duplicates_and_empty_items_dropped(self):
        assert frontmatter_tags({"tags": ["book", None, "#book", ""]}) == ["book"]

    def test_no_tags(self):
        assert frontmatter_tags(None) == []
        assert frontmatter_tags({"title": "x"}) == []
        assert frontmatter_tags({"tags": 5}) == []


class TestInlineTags:
    def test_finds_nested_tags(self):
        assert inline_tags("Finished #book/fiction and #idea.") == ["book/fiction", "idea"]

    def test_ignores_code(self):
        body = "Real #keep\n\n```\n#fenced\n```\n\nAnd `#inline` code"
        assert inline_tags(body) == ["keep"]

    def test_ignores_headings_numbers_and_words(self):
        assert inline_tags("# Heading\nIssue #123 and c#sharp") == []

    def test_tag_after_bracket(self):
        assert inline_tags("(#todo) [#later]") == ["todo", "later"]


def test_extract_tags_merges_frontmatter_first():
    assert extract_tags({"tags": ["book"]}, "#idea #book") == ("book", "idea")


class TestDocument:
    def test_normalizes_id_and_tags(self):
        document = Document(id="Library\\Dune.md", tags=("#book/", "", "fiction"))

        assert document.id == "Library/Dune.md"
        assert document.tags == ("book", "fiction")
        assert document.folder == "Library"

    def test_mtime_defaults_to_zero(self):
        assert Document(id="a.md").mtime == 0.0

    def test_in_folder(self):
        document = Document(id="Library/Drafts/Untitled.md")

        assert in_folder(document, "Library/Drafts")
        assert not in_folder(document, "Library")
        assert in_folder(document, "/Library/", recursive=True)
        assert in_folder(document, "", recursive=True)
        assert not in_folder(document, "Lib", recursive=True)


class TestInMemoryDocumentStore:
    def test_put_remove_rename(self):
        store = InMemoryDocumentStore([Document(id="b.md"), Document(id="a.md")])

        assert [d.id for d in store.list_documents()] == ["a.md", "b.md"]

        renamed = store.rename("a.md", "x/a.md")
        assert renamed.id == "x/a.md"
        assert store.get_document("a.md") is None
        assert [d.id for d in store.documents_in_folder("x")] == ["x/a.md"]

        store.remove("b.md")
        assert len(store) == 1
        assert store.rename("missing.md", "y.md") is None


class TestFileSystemDocumentStore:
    def test_scan_parses_notes(self, tmp_path):
        write_note(tmp_path, "Library/Dune.md", "---\ntitle: Dune\ntags: [book]\n---\nA #classic")
        write_note(tmp_path, "Inbox.md", "No frontmatter here")

        store = FileSystemDocumentStore(tmp_path)
        dune = store.get_document("Library/Dune.md")

        assert [d.id for d in store.list_documents()] == ["Inbox.md", "Library/Dune.md"]
        assert dune.frontmatter == {"title": "Dune", "tags": ["book"]}
        assert dune.tags == ("book", "classic")
        assert dune.modified is not None and dune.mtime > 0
        assert store.get_document("Inbox.md").frontmatter is None

    def test_skips_dot_directories_and_other_files(self, tmp_path):
        write_note(tmp_path, ".noteschema/cached.md", "x")
        write_note(tmp_path, ".obsidian/plugins/readme.md", "x")
        write_note(tmp_path, "image.png", "x")
        write_note(tmp_path, "note.md", "x")

        store = FileSystemDocumentStore(tmp_path)

        assert [d.id for d in store.list_documents()] == ["note.md"]

    def test_invalid_yaml_means_no_frontmatter(self, tmp_path):
        write_note(tmp_path, "broken.md", "---\ntitle: [unclosed\n---\nbody #tag")

        document = FileSystemDocumentStore(tmp_path).get_document("broken.md")

        assert document.frontmatter is None
        assert document.tags == ("tag",)

    def test_folder_listing(self, tmp_path):
        write_note(tmp_path, "Library/Dune.md", "x")
        write_note(tmp_path, "Library/Drafts/Untitled.md", "x")

        store = FileSystemDocumentStore(tmp_path)

        assert [d.id for d in store.documents_in_folder("Library")] == ["Library/Dune.md"]
        assert [d.id for d in store.documents_in_folder("Library", recursive=True)] == [
            "Library/Drafts/Untitled.md",
            "Library/Dune.md",
        ]

    def test_refresh_and_forget(self, tmp_path):
        path = write_note(tmp_path, "note.md", "---\nstatus: draft\n---\n")
        store = FileSystemDocumentStore(tmp_path)
        store.scan()

        path.write_text("---\nstatus: done\n---\n", encoding="utf-8")
        assert store.get_document("note.md").frontmatter == {"status": "draft"}
        assert store.refresh("note.md").frontmatter == {"status": "done"}

        path.unlink()
        assert store.refresh("note.md") is None
        assert store.get_document("note.md") is None

    def test_rename(self, tmp_path):
        path = write_note(tmp_path, "old.md", "---\ntitle: x\n---\n")
        store = FileSystemDocumentStore(tmp_path)
        store.scan()

        path.rename(tmp_path / "new.md")
        document = store.rename("old.md", "new.md")

        assert document.id == "new.md"
        assert store.get_document("old.md") is None


class TestFileBlobStore:
    @pytest.mark.asyncio
    async def test_write_then_read(self, tmp_path):
        blobs = FileBlobStore(tmp_path / "state")

        await blobs.write("tags-index.json", '{"version": 1}')

        assert await blobs.read("tags-index.json") == '{"version": 1}'
        assert not (tmp_path / "state" / "tags-index.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_missing_blob_raises_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            await FileBlobStore(tmp_path).read("missing.json")

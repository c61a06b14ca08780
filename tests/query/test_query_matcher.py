"""Tests for exact query evaluation against single documents."""

from noteschema.documents import Document
from noteschema.query.matcher import describe_query, query_matches, tag_matches


def _doc(document_id: str, *tags: str) -> Document:
    return Document(id=document_id, tags=tags)


class TestTagMatching:
    def test_nested_tags_match_their_parent(self):
        assert tag_matches("book/fiction", "book")
        assert tag_matches("#book/fiction", "#book")

    def test_prefix_must_end_at_a_segment(self):
        assert not tag_matches("bookmark", "book")
        assert not tag_matches("book", "book/fiction")


class TestQueryMatches:
    def test_folder_is_the_direct_parent(self):
        assert query_matches("Library", _doc("Library/Dune.md"))
        assert not query_matches("Library", _doc("Library/Drafts/Untitled.md"))

    def test_recursive_folder(self):
        assert query_matches("Library/*", _doc("Library/Drafts/Untitled.md"))
        assert not query_matches("Library/*", _doc("LibraryExtras/Note.md"))

    def test_root_folder(self):
        assert query_matches("/", _doc("Inbox.md"))
        assert not query_matches("/", _doc("Library/Dune.md"))
        assert query_matches("/*", _doc("Library/Dune.md"))

    def test_and_not_or(self):
        query = "Library/* and #book not #draft or #idea"

        assert query_matches(query, _doc("Library/Dune.md", "book/fiction"))
        assert not query_matches(query, _doc("Library/Draft.md", "book", "draft"))
        assert not query_matches(query, _doc("Journal/Today.md", "book"))
        assert query_matches(query, _doc("Journal/Today.md", "idea"))

    def test_empty_query_matches_nothing(self):
        assert not query_matches("", _doc("Inbox.md"))
        assert not query_matches("not #draft", _doc("Inbox.md"))


class TestDescribeQuery:
    def test_descriptions(self):
        assert describe_query("Library/* and #book not #draft") == (
            "in Library/ (recursive) and tagged #book, excluding tagged #draft"
        )
        assert describe_query("* or Journal") == "all notes or in Journal/"
        assert describe_query("/") == "in the vault root"
        assert describe_query("/*") == "anywhere in the vault"
        assert describe_query("") == "matches nothing"

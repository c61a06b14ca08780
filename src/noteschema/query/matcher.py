"""Exact evaluation of parsed queries against single documents."""

from collections.abc import Iterable

from noteschema.documents import Document
from noteschema.query.ast import (
    AllCondition,
    FolderCondition,
    FolderRecursiveCondition,
    ParsedQuery,
    QueryCondition,
    QuerySegment,
    TagCondition,
)
from noteschema.query.parser import parse_query


def normalize_tag(tag: str) -> str:
    return tag.strip().lstrip("#")


def tag_matches(tag: str, name: str) -> bool:
    """True if `tag` is `name` or nested below it (`book/fiction` under `book`)."""
    tag = normalize_tag(tag)
    name = normalize_tag(name)
    return tag == name or tag.startswith(f"{name}/")


def has_tag(tags: Iterable[str], name: str) -> bool:
    return any(tag_matches(tag, name) for tag in tags)


def condition_matches(condition: QueryCondition, document: Document) -> bool:
    if isinstance(condition, AllCondition):
        return True
    if isinstance(condition, TagCondition):
        return has_tag(document.tags, condition.name)
    if isinstance(condition, FolderCondition):
        return document.folder == condition.path
    if isinstance(condition, FolderRecursiveCondition):
        if not condition.path:
            return True
        return document.id.startswith(f"{condition.path}/")
    raise TypeError(f"Unsupported query condition: {condition!r}")


def segment_matches(segment: QuerySegment, document: Document) -> bool:
    if not segment.and_terms:
        return False
    if not all(condition_matches(c, document) for c in segment.and_terms):
        return False
    return not any(condition_matches(c, document) for c in segment.not_terms)


def query_matches(query: ParsedQuery | str, document: Document) -> bool:
    """True if the document matches at least one segment of the query."""
    parsed = parse_query(query) if isinstance(query, str) else query
    return any(segment_matches(segment, document) for segment in parsed.segments)


# --- Descriptions ---


def describe_condition(condition: QueryCondition) -> str:
    if isinstance(condition, AllCondition):
        return "all notes"
    if isinstance(condition, TagCondition):
        return f"tagged #{condition.name}"
    if isinstance(condition, FolderCondition):
        return f"in {condition.path}/" if condition.path else "in the vault root"
    if isinstance(condition, FolderRecursiveCondition):
        return f"in {condition.path}/ (recursive)" if condition.path else "anywhere in the vault"
    return repr(condition)


def describe_segment(segment: QuerySegment) -> str:
    text = " and ".join(describe_condition(c) for c in segment.and_terms)
    if segment.not_terms:
        excluded = " or ".join(describe_condition(c) for c in segment.not_terms)
        text = f"{text}, excluding {excluded}"
    return text


def describe_query(query: ParsedQuery | str) -> str:
    """Human-readable rendering, e.g. `in Library/ (recursive) and tagged #book`."""
    parsed = parse_query(query) if isinstance(query, str) else query
    if parsed.is_empty:
        return "matches nothing"
    return " or ".join(describe_segment(s) for s in parsed.segments)

"""
Syntax tree for document-selection queries.

  "a/* and #b not #c or #d"
    -> ParsedQuery(
         QuerySegment(and_terms=[FolderRecursive(a), Tag(b)], not_terms=[Tag(c)]),
         QuerySegment(and_terms=[Tag(d)], not_terms=[]),
       )
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class QueryCondition:
    """Base class for query terms."""

    pass


@dataclass(frozen=True)
class AllCondition(QueryCondition):
    """`*`: every document."""

    pass


@dataclass(frozen=True)
class FolderCondition(QueryCondition):
    """`path`: documents whose direct parent folder is `path`."""

    path: str


@dataclass(frozen=True)
class FolderRecursiveCondition(QueryCondition):
    """`path/*`: documents anywhere below `path`."""

    path: str


@dataclass(frozen=True)
class TagCondition(QueryCondition):
    """`#name`: documents tagged `name` or any nested `name/...` tag."""

    name: str


@dataclass(frozen=True)
class QuerySegment:
    """One OR-branch: all `and_terms` must hold and no `not_terms` may hold."""

    and_terms: tuple[QueryCondition, ...]
    not_terms: tuple[QueryCondition, ...] = ()


@dataclass(frozen=True)
class ParsedQuery:
    """A query split into OR-ed segments."""

    source: str
    segments: tuple[QuerySegment, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.segments

"""
Parser for document-selection queries.

Grammar, lowest precedence first:

  query      := segment ("or" segment)*
  segment    := and_chain ("not" and_chain)*     first chain positive, rest negated
  and_chain  := term ("and" term)*
  term       := "*" | "#" name | path "/*" | path

Segments without a positive term are dropped, so an empty query matches nothing.
"""

from functools import lru_cache

from noteschema.query.ast import (
    AllCondition,
    FolderCondition,
    FolderRecursiveCondition,
    ParsedQuery,
    QueryCondition,
    QuerySegment,
    TagCondition,
)
from noteschema.query.errors import QuerySyntaxError
from noteschema.query.lexer import QueryLexer, Token, TokenType
from noteschema.utils import normalize_folder


class QueryParser:
    """Parser for queries."""

    def __init__(self, tokens: list[Token], source: str = ""):
        self.tokens = tokens
        self.source = source
        self.pos = 0

    @classmethod
    def parse(cls, query_text: str) -> ParsedQuery:
        """Parse a query string into segments."""
        lexer = QueryLexer(query_text)
        tokens = lexer.tokenize()
        parser = cls(tokens, source=query_text)
        return parser.parse_query()

    def parse_query(self) -> ParsedQuery:
        segments: list[QuerySegment] = []

        while not self._is_at_end():
            segment = self._parse_segment()
            if segment.and_terms:
                segments.append(segment)
            if self._check(TokenType.OR):
                self._advance()
            elif not self._is_at_end():
                # Only a stray keyword can stop a segment early; skip it
                self._advance()

        return ParsedQuery(source=self.source, segments=tuple(segments))

    def _parse_segment(self) -> QuerySegment:
        and_terms = self._parse_and_chain()
        not_terms: list[QueryCondition] = []

        while self._check(TokenType.NOT):
            self._advance()
            not_terms.extend(self._parse_and_chain())

        return QuerySegment(and_terms=tuple(and_terms), not_terms=tuple(not_terms))

    def _parse_and_chain(self) -> list[QueryCondition]:
        terms: list[QueryCondition] = []

        term = self._parse_term()
        if term is not None:
            terms.append(term)

        while self._check(TokenType.AND):
            self._advance()
            term = self._parse_term()
            if term is not None:
                terms.append(term)

        return terms

    def _parse_term(self) -> QueryCondition | None:
        """Join consecutive words into one term. Returns None when there is none."""
        if not self._check(TokenType.WORD):
            return None

        first = self._current()
        words: list[str] = []
        while self._check(TokenType.WORD):
            words.append(self._advance().value)

        return self._build_condition(" ".join(words), first.column)

    def _build_condition(self, text: str, column: int) -> QueryCondition:
        text = text.strip()

        if text == "*":
            return AllCondition()

        if text.startswith("#"):
            name = text[1:].strip()
            if not name:
                raise QuerySyntaxError("Expected tag name after '#'", column)
            return TagCondition(name=name)

        if text.endswith("/*"):
            return FolderRecursiveCondition(path=normalize_folder(text[:-2]))

        return FolderCondition(path=normalize_folder(text))

    # --- Token helpers ---

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _advance(self) -> Token:
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _check(self, token_type: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._current().type == token_type

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF


@lru_cache(maxsize=512)
def parse_query(query_text: str) -> ParsedQuery:
    """Parse with memoization; ParsedQuery values are immutable."""
    return QueryParser.parse(query_text)

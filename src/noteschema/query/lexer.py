"""
Lexical analyzer (tokenizer) for document-selection queries.

Everything that is not whitespace or a keyword is a WORD. Consecutive words
form one term, which lets folder paths contain spaces. Double quotes keep a
keyword literal: `"Reading and Notes"/*`.
"""

from dataclasses import dataclass
from enum import Enum, auto

from noteschema.query.errors import QuerySyntaxError


class TokenType(Enum):
    """Token types for queries."""

    # Keywords
    AND = auto()
    OR = auto()
    NOT = auto()

    # Terms
    WORD = auto()

    # Special
    EOF = auto()


@dataclass
class Token:
    """A token in the query."""

    type: TokenType
    value: str
    column: int
    quoted: bool = False

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.column})"


class QueryLexer:
    """Tokenizer for queries."""

    KEYWORDS = {
        "AND": TokenType.AND,
        "OR": TokenType.OR,
        "NOT": TokenType.NOT,
    }

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.tokens: list[Token] = []

    @property
    def column(self) -> int:
        return self.pos + 1

    def tokenize(self) -> list[Token]:
        """Tokenize the entire input."""
        while self.pos < len(self.text):
            self._skip_whitespace()
            if self.pos >= len(self.text):
                break

            if self.text[self.pos] == '"':
                self._match_quoted()
            else:
                self._match_word()

        self.tokens.append(Token(TokenType.EOF, "", self.column))
        return self.tokens

    def _skip_whitespace(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _match_word(self):
        start_col = self.column
        start = self.pos
        while self.pos < len(self.text) and not self.text[self.pos].isspace():
            self.pos += 1

        value = self.text[start : self.pos]
        token_type = self.KEYWORDS.get(value.upper(), TokenType.WORD)
        self.tokens.append(Token(token_type, value, start_col))

    def _match_quoted(self):
        """Match a double-quoted run, which may be followed directly by more term text."""
        start_col = self.column
        self.pos += 1

        value = ""
        while self.pos < len(self.text) and self.text[self.pos] != '"':
            if self.text[self.pos] == "\\" and self.pos + 1 < len(self.text):
                self.pos += 1
            value += self.text[self.pos]
            self.pos += 1

        if self.pos >= len(self.text):
            raise QuerySyntaxError("Unterminated quoted term", start_col)

        # Closing quote
        self.pos += 1

        # Suffix such as the /* in "My Folder"/*
        while self.pos < len(self.text) and not self.text[self.pos].isspace():
            value += self.text[self.pos]
            self.pos += 1

        self.tokens.append(Token(TokenType.WORD, value, start_col, quoted=True))

"""
Document-selection queries for noteschema.

Queries combine folder and tag terms: `Library/* and #book not #draft or #isbn`.
"""

from noteschema.query.ast import (
    AllCondition,
    FolderCondition,
    FolderRecursiveCondition,
    ParsedQuery,
    QueryCondition,
    QuerySegment,
    TagCondition,
)
from noteschema.query.errors import QueryError, QuerySyntaxError
from noteschema.query.evaluator import QueryEvaluator, matches_property_filter
from noteschema.query.lexer import QueryLexer, Token, TokenType
from noteschema.query.matcher import describe_query, query_matches
from noteschema.query.parser import QueryParser, parse_query
from noteschema.query.tag_index import TagIndex

__all__ = [
    # AST
    "AllCondition",
    "FolderCondition",
    "FolderRecursiveCondition",
    "ParsedQuery",
    "QueryCondition",
    "QuerySegment",
    "TagCondition",
    # Errors
    "QueryError",
    "QuerySyntaxError",
    # Lexer / Parser
    "QueryLexer",
    "QueryParser",
    "Token",
    "TokenType",
    "parse_query",
    # Evaluation
    "QueryEvaluator",
    "TagIndex",
    "describe_query",
    "matches_property_filter",
    "query_matches",
]

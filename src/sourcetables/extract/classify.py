"""Classify SQL statements by their leading keywords (QUERY, DML, DDL, SESSION)."""

from __future__ import annotations

from sourcetables.extract._types import StatementKind, TokenKind
from sourcetables.extract.lexer import Token
from sourcetables.extract.splitter import Statement

_QUERY_WORDS = frozenset({"SELECT", "VALUES"})
_DML_WORDS = frozenset({"INSERT", "UPDATE", "DELETE", "MERGE", "LOAD"})
_DDL_WORDS = frozenset({"CREATE", "ALTER", "DROP", "TRUNCATE", "MSCK"})

# Session / client commands. They never read or write table data.
_SESSION_WORDS = frozenset({
    "SET", "RESET", "USE", "SHOW", "DESCRIBE", "DESC", "ADD", "LIST", "RELOAD", "DFS",
    "GRANT", "REVOKE",
})


def _first_top_level(tokens: tuple[Token, ...], words: frozenset[str]) -> Token | None:
    """First keyword in `words` outside any parentheses."""
    depth = 0
    for token in tokens:
        if token.is_punct("("):
            depth += 1
        elif token.is_punct(")"):
            depth = max(depth - 1, 0)
        elif depth == 0 and token.is_keyword(*words):
            return token
    return None


def classify(statement: Statement) -> StatementKind:
    """Classify a statement from its leading keyword.

    Catches:
    - WITH ... INSERT / FROM src INSERT ... (Hive multi-insert): DML
    - WITH ... SELECT, parenthesized set operations: QUERY
    - SET hive.exec.parallel=true, USE db: SESSION
    - Anything else: UNKNOWN, which is still walked for tables
    """
    if not statement.tokens:
        return StatementKind.UNKNOWN
    head = statement.tokens[0]
    word = head.upper if head.kind in (TokenKind.KEYWORD, TokenKind.IDENTIFIER) else ""

    if word in _SESSION_WORDS:
        return StatementKind.SESSION
    if word in _DML_WORDS:
        return StatementKind.DML
    if word in _DDL_WORDS:
        return StatementKind.DDL
    if word in ("WITH", "FROM"):
        if _first_top_level(statement.tokens, _DML_WORDS) is not None:
            return StatementKind.DML
        return StatementKind.QUERY
    if word in _QUERY_WORDS or head.is_punct("("):
        return StatementKind.QUERY
    return StatementKind.UNKNOWN


def use_database(statement: Statement) -> str | None:
    """Database named by a `USE [DATABASE|SCHEMA] <db>` statement, else None."""
    tokens = statement.tokens
    if not tokens or not tokens[0].is_keyword("USE"):
        return None
    rest = list(tokens[1:])
    if len(rest) == 2 and rest[0].kind == TokenKind.IDENTIFIER and rest[0].upper in (
        "DATABASE", "SCHEMA",
    ):
        rest = rest[1:]
    if len(rest) != 1 or not rest[0].is_name:
        return None
    return rest[0].value

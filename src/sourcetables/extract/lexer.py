"""Lossless SQL lexer: every character of the input lands in exactly one token.

The lexer never raises. Characters it does not recognize become
single-character punctuation tokens, and an unterminated quote or block
comment swallows the rest of the input as one token.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from sourcetables.extract._types import TokenKind

# Words that steer the walker. Anything else lexes as an identifier, so
# non-reserved words like `date` or `user` still work as table names and aliases.
KEYWORDS = frozenset({
    "ADD", "ALL", "ALTER", "AND", "ANTI", "AS", "ASC", "BETWEEN", "BY",
    "CASE", "CLUSTER", "CLUSTERED", "COMMENT", "CREATE", "CROSS", "CUBE",
    "DELETE", "DESC", "DESCRIBE", "DFS", "DIRECTORY", "DISTINCT", "DISTRIBUTE",
    "DROP", "ELSE", "END", "EXCEPT", "EXISTS", "EXPLAIN", "EXTERNAL", "FETCH",
    "FOR", "FROM", "FULL", "GLOBAL", "GROUP", "GROUPING", "HAVING", "IF", "IN",
    "INNER", "INSERT", "INTERSECT", "INTO", "IS", "JOIN", "LATERAL", "LEFT",
    "LIKE", "LIMIT", "LIST", "LOAD", "LOCAL", "LOCATION", "MATERIALIZED",
    "MERGE", "MINUS", "MSCK", "NATURAL", "NOT", "NULL", "OFFSET", "ON", "OR",
    "ORDER", "OUTER", "OVER", "OVERWRITE", "PARTITION", "PARTITIONED",
    "QUALIFY", "RECURSIVE", "RELOAD", "REPLACE", "RESET", "RIGHT", "RLIKE",
    "ROLLUP", "ROW", "SELECT", "SEMI", "SET", "SETS", "SHOW", "SORT", "STORED",
    "TABLE", "TABLESAMPLE", "TBLPROPERTIES", "TEMP", "TEMPORARY", "THEN",
    "TRANSACTIONAL", "TRUNCATE", "UNION", "UPDATE", "USE", "USING", "VALUES",
    "VIEW", "WHEN", "WHERE", "WINDOW", "WITH",
})

_IDENTIFIER_QUOTES = {'"': '"', "`": "`"}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    offset: int

    @property
    def end(self) -> int:
        return self.offset + len(self.text)

    @property
    def upper(self) -> str:
        return self.text.upper()

    @property
    def value(self) -> str:
        """Identifier value with quotes stripped and doubled quotes collapsed."""
        if self.kind == TokenKind.QUOTED_IDENTIFIER:
            quote = self.text[0]
            inner = self.text[1:-1] if not self.is_unterminated else self.text[1:]
            return inner.replace(quote * 2, quote)
        return self.text

    @property
    def is_significant(self) -> bool:
        return self.kind not in (TokenKind.WHITESPACE, TokenKind.COMMENT)

    @property
    def is_name(self) -> bool:
        return self.kind in (TokenKind.IDENTIFIER, TokenKind.QUOTED_IDENTIFIER)

    @property
    def is_unterminated(self) -> bool:
        if self.kind == TokenKind.STRING:
            return not _closes(self.text, "'", escapes=True)
        if self.kind == TokenKind.QUOTED_IDENTIFIER:
            return not _closes(self.text, self.text[0], escapes=False)
        if self.kind == TokenKind.COMMENT and self.text.startswith("/*"):
            return len(self.text) < 4 or not self.text.endswith("*/")
        return False

    def is_keyword(self, *words: str) -> bool:
        return self.kind == TokenKind.KEYWORD and (not words or self.upper in words)

    def is_punct(self, char: str) -> bool:
        return self.kind == TokenKind.PUNCTUATION and self.text == char


def _closes(text: str, quote: str, *, escapes: bool) -> bool:
    """Whether a quoted token's text ends with its own closing quote."""
    if len(text) < 2 or not text.endswith(quote):
        return False
    # Re-scan the body: the final quote must not be an escaped one.
    i = 1
    while i < len(text):
        ch = text[i]
        if escapes and ch == "\\":
            i += 2
            continue
        if ch == quote:
            if i + 1 < len(text) and text[i + 1] == quote:
                i += 2
                continue
            return i == len(text) - 1
        i += 1
    return False


def _is_word_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def _is_word_char(ch: str) -> bool:
    return ch == "_" or ch == "$" or ch.isalnum()


def tokenize(sql: str) -> Iterator[Token]:
    """Yield tokens for `sql` lazily, from offset 0 to the end."""
    pos = 0
    n = len(sql)
    while pos < n:
        ch = sql[pos]
        start = pos

        if ch.isspace():
            while pos < n and sql[pos].isspace():
                pos += 1
            yield Token(TokenKind.WHITESPACE, sql[start:pos], start)
            continue

        if sql.startswith("--", pos):
            end = sql.find("\n", pos)
            pos = n if end == -1 else end
            yield Token(TokenKind.COMMENT, sql[start:pos], start)
            continue

        if sql.startswith("/*", pos):
            end = sql.find("*/", pos + 2)
            pos = n if end == -1 else end + 2
            yield Token(TokenKind.COMMENT, sql[start:pos], start)
            continue

        if ch == "'":
            pos = _scan_quoted(sql, pos, "'", escapes=True)
            yield Token(TokenKind.STRING, sql[start:pos], start)
            continue

        if ch in _IDENTIFIER_QUOTES:
            pos = _scan_quoted(sql, pos, _IDENTIFIER_QUOTES[ch], escapes=False)
            yield Token(TokenKind.QUOTED_IDENTIFIER, sql[start:pos], start)
            continue

        if sql.startswith("${", pos) and sql.find("}", pos + 2) != -1:
            pos = _scan_word(sql, pos)
            yield Token(TokenKind.IDENTIFIER, sql[start:pos], start)
            continue

        if ch.isdigit() or (ch == "." and pos + 1 < n and sql[pos + 1].isdigit()):
            pos = _scan_number(sql, pos)
            yield Token(TokenKind.NUMBER, sql[start:pos], start)
            continue

        if _is_word_start(ch):
            pos = _scan_word(sql, pos)
            word = sql[start:pos]
            kind = TokenKind.KEYWORD if word.upper() in KEYWORDS else TokenKind.IDENTIFIER
            yield Token(kind, word, start)
            continue

        pos += 1
        yield Token(TokenKind.PUNCTUATION, ch, start)


def _scan_word(sql: str, pos: int) -> int:
    """Return the offset just past a word. Hive `${var}` substitutions are part of it."""
    n = len(sql)
    while pos < n:
        if sql.startswith("${", pos):
            end = sql.find("}", pos + 2)
            if end == -1:
                break
            pos = end + 1
        elif _is_word_char(sql[pos]):
            pos += 1
        else:
            break
    return pos


def _scan_quoted(sql: str, pos: int, quote: str, *, escapes: bool) -> int:
    """Return the offset just past the closing quote, or len(sql) if unterminated."""
    n = len(sql)
    pos += 1
    while pos < n:
        ch = sql[pos]
        if escapes and ch == "\\":
            pos += 2
            continue
        if ch == quote:
            if pos + 1 < n and sql[pos + 1] == quote:
                pos += 2
                continue
            return pos + 1
        pos += 1
    return n


def _scan_number(sql: str, pos: int) -> int:
    n = len(sql)
    while pos < n and sql[pos].isdigit():
        pos += 1
    if pos < n and sql[pos] == "." and pos + 1 < n and sql[pos + 1].isdigit():
        pos += 1
        while pos < n and sql[pos].isdigit():
            pos += 1
    if pos < n and sql[pos] in "eE":
        exp_end = pos + 1
        if exp_end < n and sql[exp_end] in "+-":
            exp_end += 1
        if exp_end < n and sql[exp_end].isdigit():
            pos = exp_end
            while pos < n and sql[pos].isdigit():
                pos += 1
    return pos


class Lexer:
    """Restartable token stream over a SQL string."""

    def __init__(self, sql: str) -> None:
        self.sql = sql

    def __iter__(self) -> Iterator[Token]:
        return tokenize(self.sql)

    def significant(self) -> Iterator[Token]:
        """Tokens with whitespace and comments dropped."""
        return (t for t in tokenize(self.sql) if t.is_significant)

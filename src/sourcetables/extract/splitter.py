"""Split a token stream into statements on top-level semicolons."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sourcetables.diagnostics import Span
from sourcetables.extract.lexer import Token


@dataclass(frozen=True)
class Statement:
    index: int
    tokens: tuple[Token, ...]
    span: Span

    @property
    def offset(self) -> int:
        return self.span.start

    def text(self, sql: str) -> str:
        return self.span.slice(sql)


def split_statements(tokens: Iterable[Token]) -> list[Statement]:
    """Group significant tokens into statements, dropping empty ones.

    Strings, quoted identifiers and comments are single tokens by the time
    they get here, so a `;` inside them never splits.
    """
    statements: list[Statement] = []
    current: list[Token] = []

    def flush() -> None:
        if not current:
            return
        span = Span(current[0].offset, current[-1].end)
        statements.append(Statement(index=len(statements), tokens=tuple(current), span=span))
        current.clear()

    for token in tokens:
        if not token.is_significant:
            continue
        if token.is_punct(";"):
            flush()
            continue
        current.append(token)
    flush()
    return statements

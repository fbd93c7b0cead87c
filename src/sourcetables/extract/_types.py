"""Internal types for the extraction engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from sourcetables.diagnostics import Diagnostic, Span


class TokenKind(enum.Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    QUOTED_IDENTIFIER = "quoted_identifier"
    STRING = "string"
    NUMBER = "number"
    PUNCTUATION = "punctuation"
    COMMENT = "comment"
    WHITESPACE = "whitespace"


class StatementKind(enum.Enum):
    QUERY = "query"
    DML = "dml"
    DDL = "ddl"
    SESSION = "session"  # SET, USE, SHOW, DESCRIBE, etc.
    UNKNOWN = "unknown"  # Walked anyway → over-report rather than drop


class Classification(enum.Enum):
    SOURCE = "source"
    ALIAS_DEFINITION = "alias_definition"
    CTE_DEFINITION = "cte_definition"
    UNRESOLVED = "unresolved"  # Context ran out; still reported as a source


class Engine(enum.Enum):
    SCAN = "scan"
    SQLGLOT = "sqlglot"


@dataclass(frozen=True)
class TableReference:
    parts: tuple[str, ...]
    span: Span
    classification: Classification
    statement: int = 0

    @property
    def name(self) -> str:
        return ".".join(self.parts)

    @property
    def is_qualified(self) -> bool:
        return len(self.parts) > 1

    @property
    def is_source(self) -> bool:
        return self.classification in (Classification.SOURCE, Classification.UNRESOLVED)


@dataclass
class StatementSummary:
    index: int
    kind: StatementKind
    span: Span
    engine: Engine | None
    tables: list[str] = field(default_factory=list)


@dataclass
class ExtractionResult:
    source_sql: str
    tables: list[str]
    statements: list[StatementSummary] = field(default_factory=list)
    references: list[TableReference] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def cte_names(self) -> list[str]:
        return sorted({
            r.name for r in self.references
            if r.classification == Classification.CTE_DEFINITION
        })

    @property
    def unresolved(self) -> list[TableReference]:
        return [r for r in self.references if r.classification == Classification.UNRESOLVED]

"""Rust compiler-inspired diagnostics for SQL table extraction.

Extraction never fails on malformed SQL. Anything the lexer or walker could
not make sense of is reported as a Diagnostic next to the result, with spans
pointing back into the original script so a caller can show where the
problem is.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from sourcetables.diagnostics.codes import DiagnosticCode


class Level(enum.IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2


@dataclass(frozen=True)
class Span:
    start: int
    end: int

    def slice(self, sql: str) -> str:
        return sql[self.start : self.end]

    def __len__(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def line_col(self, sql: str) -> tuple[int, int]:
        """1-based line and column of the span start."""
        before = sql[: self.start]
        line = before.count("\n") + 1
        col = self.start - (before.rfind("\n") + 1) + 1
        return line, col


class SpanKind(enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass
class SpanLabel:
    span: Span
    kind: SpanKind
    label: str | None = None


@dataclass
class Diagnostic:
    level: Level
    code: DiagnosticCode
    message: str
    spans: list[SpanLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    # -- Builder classmethods ---------------------------------------------------

    @classmethod
    def error(cls, code: DiagnosticCode, message: str) -> Diagnostic:
        return cls(level=Level.ERROR, code=code, message=message)

    @classmethod
    def warning(cls, code: DiagnosticCode, message: str) -> Diagnostic:
        return cls(level=Level.WARNING, code=code, message=message)

    @classmethod
    def info(cls, code: DiagnosticCode, message: str) -> Diagnostic:
        return cls(level=Level.INFO, code=code, message=message)

    # -- Builder chain methods --------------------------------------------------

    def span(self, span: Span, label: str) -> Diagnostic:
        self.spans.append(SpanLabel(span=span, kind=SpanKind.PRIMARY, label=label))
        return self

    def secondary_span(self, span: Span, label: str) -> Diagnostic:
        self.spans.append(SpanLabel(span=span, kind=SpanKind.SECONDARY, label=label))
        return self

    def note(self, note: str) -> Diagnostic:
        self.notes.append(note)
        return self

    # -- Query methods ----------------------------------------------------------

    @property
    def is_error(self) -> bool:
        return self.level == Level.ERROR

    @property
    def primary_span(self) -> Span | None:
        for label in self.spans:
            if label.kind == SpanKind.PRIMARY:
                return label.span
        return None


def max_level(diagnostics: list[Diagnostic]) -> Level | None:
    if not diagnostics:
        return None
    return max(d.level for d in diagnostics)

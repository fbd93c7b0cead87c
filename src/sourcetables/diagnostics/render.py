"""Render diagnostics and extraction results for terminal (text) and JSON output."""

from __future__ import annotations

from sourcetables.diagnostics.types import Diagnostic
from sourcetables.extract._types import ExtractionResult


def render_json(result: ExtractionResult) -> dict:
    """Render an ExtractionResult as a JSON-serializable dict."""
    sql = result.source_sql
    return {
        "tables": result.tables,
        "statements": [
            {
                "index": s.index,
                "kind": s.kind.value,
                "engine": s.engine.value if s.engine is not None else None,
                "span": [s.span.start, s.span.end],
                "tables": s.tables,
            }
            for s in result.statements
        ],
        "cte_names": result.cte_names,
        "unresolved": [r.name for r in result.unresolved],
        "diagnostics": [diagnostic_to_dict(d, sql) for d in result.diagnostics],
    }


def render_text(diagnostics: list[Diagnostic], sql: str = "") -> str:
    """Render diagnostics as human-readable text."""
    lines: list[str] = []
    for d in diagnostics:
        lines.append(f"{d.level.name.lower()}[{d.code}]: {d.message}")
        span = d.primary_span
        if span is not None and sql:
            line, col = span.line_col(sql)
            lines.append(f"  --> line {line}, column {col}")
        for note in d.notes:
            lines.append(f"  = note: {note}")
    return "\n".join(lines)


def diagnostic_to_dict(d: Diagnostic, sql: str = "") -> dict:
    data: dict = {
        "level": d.level.name.lower(),
        "code": str(d.code),
        "message": d.message,
        "notes": d.notes,
    }
    span = d.primary_span
    if span is not None:
        data["span"] = [span.start, span.end]
        if sql:
            data["line"], data["column"] = span.line_col(sql)
    return data

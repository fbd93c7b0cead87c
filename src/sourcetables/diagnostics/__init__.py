"""Diagnostic system: types, codes and rendering."""

from sourcetables.diagnostics.codes import DiagnosticCode
from sourcetables.diagnostics.types import (
    Diagnostic,
    Level,
    Span,
    SpanKind,
    SpanLabel,
    max_level,
)

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "Level",
    "Span",
    "SpanKind",
    "SpanLabel",
    "max_level",
]

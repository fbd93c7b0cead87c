"""Tests for diagnostic types, codes and spans."""

from sourcetables.diagnostics import (
    Diagnostic,
    Level,
    Span,
    SpanKind,
    codes,
    max_level,
)


def test_code_rendering():
    assert str(codes.NO_INPUT) == "S0001"
    assert str(codes.UNBALANCED_PARENS) == "S0301"


def test_codes_are_unique():
    values = [
        v.value for v in vars(codes).values() if isinstance(v, codes.DiagnosticCode)
    ]
    assert len(values) == len(set(values))


def test_builder_chain():
    diag = (
        Diagnostic.warning(codes.UNRESOLVED_REFERENCE, "could not fully resolve 'db'")
        .span(Span(14, 17), "reported as a source table")
        .secondary_span(Span(0, 6), "in this statement")
        .note("unresolved references are kept")
    )
    assert diag.level == Level.WARNING
    assert diag.primary_span == Span(14, 17)
    assert [s.kind for s in diag.spans] == [SpanKind.PRIMARY, SpanKind.SECONDARY]
    assert diag.notes == ["unresolved references are kept"]
    assert not diag.is_error


def test_primary_span_absent():
    assert Diagnostic.info(codes.STATEMENT_SKIPPED, "skipped").primary_span is None


def test_span_helpers():
    sql = "SELECT *\nFROM orders"
    span = Span(14, 20)
    assert span.slice(sql) == "orders"
    assert len(span) == 6
    assert not span.is_empty
    assert Span(3, 3).is_empty
    assert span.line_col(sql) == (2, 6)
    assert Span(0, 6).line_col(sql) == (1, 1)


def test_max_level():
    assert max_level([]) is None
    diags = [
        Diagnostic.info(codes.STATEMENT_SKIPPED, "a"),
        Diagnostic.error(codes.NO_INPUT, "b"),
        Diagnostic.warning(codes.MALFORMED_CTE, "c"),
    ]
    assert max_level(diags) == Level.ERROR

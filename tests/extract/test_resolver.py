"""Test result merging: case-insensitive dedup, sorting, USE qualification."""

from sourcetables.diagnostics import Span
from sourcetables.extract._types import Classification, TableReference
from sourcetables.extract.resolver import ResultSet, qualified_name, resolve


def _ref(*parts: str, classification=Classification.SOURCE) -> TableReference:
    return TableReference(parts, Span(0, 0), classification)


def test_dedup_keeps_first_casing():
    names = ResultSet()
    assert names.add("Orders")
    assert not names.add("ORDERS")
    assert list(names) == ["Orders"]
    assert "orders" in names


def test_sorted_ignores_case():
    names = ResultSet()
    for name in ("b", "A", "c", "a.x"):
        names.add(name)
    assert names.sorted() == ["A", "a.x", "b", "c"]


def test_resolve_skips_non_sources():
    refs = [
        _ref("a"),
        _ref("t", classification=Classification.CTE_DEFINITION),
        _ref("x", classification=Classification.ALIAS_DEFINITION),
        _ref("db", "u", classification=Classification.UNRESOLVED),
    ]
    assert resolve(refs).sorted() == ["a", "db.u"]


def test_resolve_into_existing_set():
    names = ResultSet()
    resolve([_ref("a")], into=names)
    resolve([_ref("A"), _ref("b")], into=names)
    assert names.sorted() == ["a", "b"]


def test_qualified_name_applies_database_to_bare_names():
    assert qualified_name(_ref("t"), "analytics") == "analytics.t"
    assert qualified_name(_ref("db", "t"), "analytics") == "db.t"
    assert qualified_name(_ref("t")) == "t"


def test_quoted_name_with_dot_is_not_qualified_again():
    assert qualified_name(_ref("db.t"), "analytics") == "db.t"

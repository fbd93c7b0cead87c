"""Test statement splitting on top-level semicolons."""

from sourcetables.extract.lexer import Lexer
from sourcetables.extract.splitter import split_statements


def _split(sql: str) -> list[str]:
    return [s.text(sql) for s in split_statements(Lexer(sql))]


def test_single_statement():
    assert _split("SELECT 1") == ["SELECT 1"]


def test_multiple_statements_keep_order():
    assert _split("SELECT 1; SELECT 2;SELECT 3") == ["SELECT 1", "SELECT 2", "SELECT 3"]


def test_empty_statements_discarded():
    assert _split(";;SELECT 1;;\n;") == ["SELECT 1"]


def test_semicolon_in_string_does_not_split():
    assert _split("SELECT 'a;b' FROM t; SELECT 2") == ["SELECT 'a;b' FROM t", "SELECT 2"]


def test_semicolon_in_comment_does_not_split():
    sql = "SELECT 1 -- one; two\n FROM t; /* ; */ SELECT 2"
    assert len(_split(sql)) == 2


def test_semicolon_in_quoted_identifier_does_not_split():
    assert _split("SELECT * FROM `a;b`") == ["SELECT * FROM `a;b`"]


def test_comment_only_script_has_no_statements():
    assert _split("-- nothing here\n/* at all */\n") == []


def test_indexes_and_spans():
    sql = "SELECT 1;\n  SELECT 2"
    statements = split_statements(Lexer(sql))
    assert [s.index for s in statements] == [0, 1]
    assert statements[1].offset == sql.index("SELECT 2")


def test_comments_are_not_in_statement_tokens():
    statements = split_statements(Lexer("SELECT /* x */ 1"))
    assert [t.text for t in statements[0].tokens] == ["SELECT", "1"]

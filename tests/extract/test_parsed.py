"""Test the sqlglot engine: CTE-aware extraction from a parsed statement."""

from sourcetables.diagnostics import codes
from sourcetables.extract import Engine, run_extraction
from sourcetables.extract.parsed import extract_tables, parse_statement


def _tables(sql: str):
    return extract_tables(parse_statement(sql))


def test_simple_select():
    assert _tables("SELECT * FROM users") == [("users",)]


def test_join():
    assert _tables("SELECT * FROM users JOIN orders ON 1=1") == [("orders",), ("users",)]


def test_schema_qualified():
    assert _tables("SELECT * FROM ods.users") == [("ods", "users")]


def test_cte_resolved():
    sql = "WITH cte AS (SELECT * FROM customers) SELECT * FROM cte"
    assert _tables(sql) == [("customers",)]


def test_nested_ctes():
    sql = (
        "WITH a AS (SELECT * FROM raw_events), "
        "b AS (SELECT * FROM a JOIN users ON 1=1) "
        "SELECT * FROM b"
    )
    assert _tables(sql) == [("raw_events",), ("users",)]


def test_subquery():
    assert _tables("SELECT * FROM (SELECT id FROM users) sub") == [("users",)]


def test_union():
    sql = "SELECT id FROM users UNION ALL SELECT id FROM customers"
    assert _tables(sql) == [("customers",), ("users",)]


def test_insert_includes_target():
    tables = _tables("INSERT INTO target SELECT * FROM source")
    assert ("target",) in tables
    assert ("source",) in tables


def test_delete_includes_target():
    tables = _tables("DELETE FROM users WHERE id IN (SELECT id FROM blacklist)")
    assert ("users",) in tables
    assert ("blacklist",) in tables


def test_ctas_includes_target():
    tables = _tables("CREATE TABLE new_table AS SELECT * FROM old_table")
    assert ("old_table",) in tables
    assert ("new_table",) in tables


def test_plain_ddl_not_modeled():
    assert _tables("CREATE TABLE t (id INT)") is None
    assert _tables("DROP TABLE t") is None


# -- Through the pipeline ----------------------------------------------------------


def test_sqlglot_engine():
    result = run_extraction("SELECT * FROM a JOIN b ON a.id=b.id", engine="sqlglot")
    assert result.tables == ["a", "b"]
    assert result.statements[0].engine == Engine.SQLGLOT


def test_sqlglot_engine_matches_walker_on_cte():
    sql = "WITH t AS (SELECT * FROM a) SELECT * FROM t JOIN b ON t.id=b.id"
    assert run_extraction(sql, engine=Engine.SQLGLOT).tables == run_extraction(sql).tables


def test_sqlglot_engine_applies_use():
    result = run_extraction("USE test; SELECT * FROM my_table", engine="sqlglot")
    assert result.tables == ["test.my_table"]


def test_unparseable_statement_falls_back_to_walker():
    result = run_extraction(
        "SELECT * FROM (SELECT * FROM t; SELECT * FROM u", engine=Engine.SQLGLOT
    )
    assert result.tables == ["t", "u"]
    assert str(codes.PARSER_FALLBACK) in [str(d.code) for d in result.diagnostics]
    assert result.statements[0].engine == Engine.SCAN
    assert result.statements[1].engine == Engine.SQLGLOT


def test_unmodeled_statement_uses_walker():
    result = run_extraction("CREATE TABLE t (id INT)", engine=Engine.SQLGLOT)
    assert result.tables == []
    assert result.statements[0].engine == Engine.SCAN

"""Test statement classification."""

import pytest

from sourcetables.extract._types import StatementKind
from sourcetables.extract.classify import classify, use_database
from sourcetables.extract.lexer import Lexer
from sourcetables.extract.splitter import split_statements


def _statement(sql: str):
    return split_statements(Lexer(sql))[0]


@pytest.mark.parametrize(
    "sql,expected",
    [
        ("SELECT 1", StatementKind.QUERY),
        ("(SELECT 1) UNION (SELECT 2)", StatementKind.QUERY),
        ("WITH a AS (SELECT 1) SELECT * FROM a", StatementKind.QUERY),
        ("VALUES (1, 2)", StatementKind.QUERY),
        ("INSERT INTO t SELECT 1", StatementKind.DML),
        ("WITH a AS (SELECT 1) INSERT INTO t SELECT * FROM a", StatementKind.DML),
        ("FROM src INSERT OVERWRITE TABLE t SELECT *", StatementKind.DML),
        ("FROM src SELECT *", StatementKind.QUERY),
        ("UPDATE t SET a = 1", StatementKind.DML),
        ("MERGE INTO t USING s ON t.id = s.id", StatementKind.DML),
        ("CREATE TABLE t AS SELECT 1", StatementKind.DDL),
        ("DROP TABLE t", StatementKind.DDL),
        ("SET hive.exec.parallel=true", StatementKind.SESSION),
        ("use analytics", StatementKind.SESSION),
        ("SHOW TABLES", StatementKind.SESSION),
        ("DESCRIBE t", StatementKind.SESSION),
        ("EXPLAIN SELECT * FROM t", StatementKind.UNKNOWN),
    ],
)
def test_classify(sql, expected):
    assert classify(_statement(sql)) == expected


def test_dml_inside_parens_does_not_count():
    sql = "WITH a AS (SELECT 1) SELECT * FROM a WHERE x IN (SELECT 1)"
    assert classify(_statement(sql)) == StatementKind.QUERY


def test_use_database():
    assert use_database(_statement("USE analytics")) == "analytics"
    assert use_database(_statement("USE `my-db`")) == "my-db"
    assert use_database(_statement("USE DATABASE analytics")) == "analytics"
    assert use_database(_statement("USE SCHEMA analytics")) == "analytics"


def test_use_database_named_database():
    assert use_database(_statement("USE database")) == "database"


def test_use_database_rejects_other_statements():
    assert use_database(_statement("SET x=1")) is None
    assert use_database(_statement("USE a b c")) is None

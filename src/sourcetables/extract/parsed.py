"""CTE-aware table extraction using sqlglot scope analysis.

This engine parses a statement into a full sqlglot AST. It is more precise
than the keyword walker on the constructs sqlglot understands. Statements it
cannot parse, or kinds it does not model, are left to the walker.
"""

from __future__ import annotations

import sqlglot
from sqlglot import exp
from sqlglot.optimizer.scope import traverse_scope

_MODELED_TYPES = (exp.Query, exp.Insert, exp.Update, exp.Delete, exp.Merge, exp.Create)
_WRITE_TYPES = (exp.Insert, exp.Delete, exp.Update, exp.Merge)


def parse_statement(sql: str, *, dialect: str | None = "hive") -> exp.Expression:
    """Parse exactly one statement. Raises sqlglot.errors.SqlglotError on failure."""
    return sqlglot.parse_one(sql, dialect=dialect)


def extract_tables(statement: exp.Expression) -> list[tuple[str, ...]] | None:
    """Extract referenced table names from a parsed statement.

    Resolves CTEs: only real (physical) tables are returned, as name parts
    (`("db", "t")` or `("t",)`). Handles SELECT, JOIN, subqueries, UNION,
    INSERT, UPDATE, DELETE, MERGE, CREATE TABLE AS and CREATE VIEW AS.

    Returns None for statements this engine does not model (plain DDL,
    commands sqlglot only parsed as opaque text).
    """
    if not isinstance(statement, _MODELED_TYPES):
        return None
    if isinstance(statement, exp.Create) and not isinstance(statement.expression, exp.Query):
        return None

    cte_names: set[str] = set()
    source_tables: dict[tuple[str, ...], None] = {}

    try:
        scopes = list(traverse_scope(statement))
    except Exception:
        # Fall back to simple AST walk if scope analysis fails
        return _walk_tables(statement)

    if not scopes:
        return _walk_tables(statement)

    # Pass 1: collect CTE names
    for scope in scopes:
        if scope.is_cte:
            cte_names.add(scope.expression.parent.alias.lower())

    # Pass 2: collect real tables from all scopes
    for scope in scopes:
        for table in scope.tables:
            if not _is_cte_ref(table, cte_names):
                source_tables[_name_parts(table)] = None

    # Pass 3: write targets (INSERT INTO, DELETE FROM, UPDATE, MERGE INTO, CTAS)
    targets = [statement.find(t) for t in _WRITE_TYPES]
    if isinstance(statement, exp.Create):
        targets.append(statement)
    for node in targets:
        if node is None:
            continue
        table = node.find(exp.Table)
        if table is not None and table.name and not _is_cte_ref(table, cte_names):
            source_tables[_name_parts(table)] = None

    return sorted(source_tables)


def _walk_tables(statement: exp.Expression) -> list[tuple[str, ...]]:
    """Simple AST walk fallback for statements without scopes."""
    cte_names = {cte.alias.lower() for cte in statement.find_all(exp.CTE)}
    tables: dict[tuple[str, ...], None] = {}
    for node in statement.walk():
        if isinstance(node, exp.Table) and node.name and not _is_cte_ref(node, cte_names):
            tables[_name_parts(node)] = None
    return sorted(tables)


def _is_cte_ref(table: exp.Table, cte_names: set[str]) -> bool:
    return not table.db and table.name.lower() in cte_names


def _name_parts(table: exp.Table) -> tuple[str, ...]:
    """Build (catalog, db, table), dropping the parts that are absent."""
    return tuple(part for part in (table.catalog, table.db, table.name) if part)

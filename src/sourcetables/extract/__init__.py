"""Extraction pipeline: lex, split, classify, walk, resolve, return the result."""

from __future__ import annotations

import sqlglot

from sourcetables.diagnostics import Diagnostic, Span, codes
from sourcetables.extract._types import (
    Classification,
    Engine,
    ExtractionResult,
    StatementKind,
    StatementSummary,
    TableReference,
    TokenKind,
)
from sourcetables.extract.classify import classify, use_database
from sourcetables.extract.lexer import Lexer, Token
from sourcetables.extract.parsed import extract_tables, parse_statement
from sourcetables.extract.resolver import ResultSet, resolve
from sourcetables.extract.splitter import Statement, split_statements
from sourcetables.extract.walker import walk_statement

__all__ = [
    "Classification",
    "Engine",
    "ExtractionResult",
    "StatementKind",
    "TableReference",
    "extract_source_tables",
    "run_extraction",
]

_UNTERMINATED_CODES = {
    TokenKind.STRING: (codes.UNTERMINATED_STRING, "unterminated string literal"),
    TokenKind.QUOTED_IDENTIFIER: (codes.UNTERMINATED_IDENTIFIER, "unterminated quoted identifier"),
    TokenKind.COMMENT: (codes.UNTERMINATED_COMMENT, "unterminated block comment"),
}


def extract_source_tables(sql_text: str) -> list[str]:
    """Sorted, deduplicated names of every table `sql_text` reads from or writes to."""
    return run_extraction(sql_text).tables


def run_extraction(
    sql: str,
    *,
    engine: Engine | str = Engine.SCAN,
    dialect: str | None = "hive",
) -> ExtractionResult:
    """Run the full extraction pipeline on a SQL script.

    Steps:
        1. Lex the whole script (comments and whitespace kept for offsets)
        2. Split into statements on top-level semicolons
        3. Classify each statement; SET/USE/SHOW etc. are not walked, USE
           switches the database applied to bare names that follow
        4. Extract table references with the chosen engine
        5. Merge sources into one case-insensitive, sorted result

    Args:
        sql: The raw SQL script.
        engine: "scan" (keyword walker) or "sqlglot" (parser, with per-statement
            fallback to the walker).
        dialect: sqlglot dialect used by the sqlglot engine.

    Returns:
        ExtractionResult with tables, per-statement summaries, every classified
        reference and all diagnostics. Never raises for malformed SQL.
    """
    engine = Engine(engine)
    tokens = list(Lexer(sql))
    diagnostics = _lexing_diagnostics(tokens)

    result_set = ResultSet()
    references: list[TableReference] = []
    summaries: list[StatementSummary] = []
    database: str | None = None

    for statement in split_statements(tokens):
        kind = classify(statement)

        if kind == StatementKind.SESSION:
            switched = use_database(statement)
            if switched is not None:
                database = switched
                diagnostics.append(
                    Diagnostic.info(
                        codes.DATABASE_SWITCHED, f"current database is now '{switched}'"
                    ).span(statement.span, "USE statement")
                )
            else:
                diagnostics.append(
                    Diagnostic.info(
                        codes.STATEMENT_SKIPPED,
                        f"{statement.tokens[0].upper} statement does not touch tables",
                    ).span(statement.span, "skipped")
                )
            summaries.append(StatementSummary(statement.index, kind, statement.span, None))
            continue

        if engine == Engine.SQLGLOT:
            refs, used, statement_diags = _extract_parsed(statement, sql, dialect)
        else:
            walk = walk_statement(statement)
            refs, used, statement_diags = walk.references, Engine.SCAN, walk.diagnostics

        references.extend(refs)
        diagnostics.extend(statement_diags)
        resolve(refs, database=database, into=result_set)
        summaries.append(
            StatementSummary(
                index=statement.index,
                kind=kind,
                span=statement.span,
                engine=used,
                tables=resolve(refs, database=database).sorted(),
            )
        )

    return ExtractionResult(
        source_sql=sql,
        tables=result_set.sorted(),
        statements=summaries,
        references=references,
        diagnostics=diagnostics,
    )


def _lexing_diagnostics(tokens: list[Token]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for token in tokens:
        if token.kind in _UNTERMINATED_CODES and token.is_unterminated:
            code, message = _UNTERMINATED_CODES[token.kind]
            diagnostics.append(
                Diagnostic.warning(code, message)
                .span(Span(token.offset, token.offset + 1), "starts here")
                .note("the rest of the script was read as part of it")
            )
    return diagnostics


def _extract_parsed(
    statement: Statement,
    sql: str,
    dialect: str | None,
) -> tuple[list[TableReference], Engine, list[Diagnostic]]:
    """sqlglot engine for one statement, falling back to the walker."""
    try:
        parsed = parse_statement(statement.text(sql), dialect=dialect)
        names = extract_tables(parsed)
    except (sqlglot.errors.SqlglotError, RecursionError) as e:
        walk = walk_statement(statement)
        reason = str(e).splitlines()[0] if str(e) else type(e).__name__
        fallback = (
            Diagnostic.warning(
                codes.PARSER_FALLBACK,
                f"sqlglot could not parse statement {statement.index + 1}",
            )
            .span(statement.span, "parsed with the keyword walker instead")
            .note(reason)
        )
        return walk.references, Engine.SCAN, [fallback, *walk.diagnostics]

    if names is None:
        walk = walk_statement(statement)
        return walk.references, Engine.SCAN, walk.diagnostics

    refs = [
        TableReference(parts, statement.span, Classification.SOURCE, statement.index)
        for parts in names
    ]
    return refs, Engine.SQLGLOT, []

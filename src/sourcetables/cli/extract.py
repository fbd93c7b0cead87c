"""The `extract` command: list the source tables of a SQL script."""

from __future__ import annotations

import time
from dataclasses import replace
from pathlib import Path

import click

from sourcetables.cli._output import format_error, format_result
from sourcetables.cli._shared import read_sql
from sourcetables.command import InputError
from sourcetables.diagnostics.render import render_text
from sourcetables.extract import Engine, run_extraction
from sourcetables.querylog import cleanup_old_logs, log_extraction
from sourcetables.settings import load_settings

_PATH = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.command()
@click.argument("sql", required=False)
@click.option("--file", "file_path", type=_PATH, default=None, help="Read SQL from a file.")
@click.option(
    "--base64",
    "base64_path",
    type=_PATH,
    default=None,
    help="Read base64-encoded file content, as the form sends it.",
)
@click.option("--from-stdin", is_flag=True, help="Read SQL from stdin instead of argument.")
@click.option(
    "--engine",
    type=click.Choice([e.value for e in Engine]),
    default=None,
    help="Extraction engine (default: extract.engine setting, else scan).",
)
@click.option("--dialect", default=None, help="sqlglot dialect for --engine sqlglot.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format.",
)
@click.option(
    "--separator",
    type=click.Choice(["newline", "comma"]),
    default=None,
    help="How table names are joined in text output.",
)
@click.option("--verbose", "-v", is_flag=True, help="Print diagnostics to stderr.")
@click.option("--no-log", is_flag=True, help="Do not write this run to the extraction log.")
def extract(
    sql: str | None,
    file_path: Path | None,
    base64_path: Path | None,
    from_stdin: bool,
    engine: str | None,
    dialect: str | None,
    output_format: str,
    separator: str | None,
    verbose: bool,
    no_log: bool,
) -> None:
    """List every table SQL reads from or writes to.

    \b
    Examples:
      sourcetables extract "SELECT * FROM a JOIN b ON a.id = b.id"
      sourcetables extract --file etl/daily.sql --separator comma
      sourcetables extract --base64 upload.b64 --format json
    """
    settings = load_settings()
    if engine is not None:
        settings = replace(settings, engine=engine)
    if dialect is not None:
        settings = replace(settings, dialect=dialect)
    if separator is not None:
        settings = replace(settings, separator=separator)
    should_log = settings.log_enabled and not no_log

    start = time.monotonic()
    try:
        text, source = read_sql(
            sql,
            file_path=file_path,
            base64_path=base64_path,
            from_stdin=from_stdin,
            max_input_bytes=settings.max_input_bytes,
        )
    except InputError as e:
        click.echo(format_error(e.diagnostic, output_format=output_format), err=True)
        if should_log:
            log_extraction(
                sql="",
                source="file" if file_path or base64_path else "text",
                engine=settings.engine,
                dialect=settings.dialect,
                diagnostics=[str(e.diagnostic.code)],
                error=True,
            )
        raise SystemExit(1) from e

    result = run_extraction(text, engine=settings.engine, dialect=settings.dialect)
    duration_ms = (time.monotonic() - start) * 1000

    output = format_result(result, output_format=output_format, joiner=settings.joiner)
    if output:
        click.echo(output)
    if verbose and result.diagnostics:
        click.echo(render_text(result.diagnostics, result.source_sql), err=True)

    if should_log:
        log_extraction(
            sql=text,
            source=source,
            engine=settings.engine,
            dialect=settings.dialect,
            tables=result.tables,
            statements=len(result.statements),
            diagnostics=[str(d.code) for d in result.diagnostics],
            duration_ms=duration_ms,
        )
        cleanup_old_logs(retention_days=settings.log_retention_days)

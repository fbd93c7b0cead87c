"""Shared helpers for CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from sourcetables.command import check_size, decode_bytes, decode_file_content, resolve_input


def read_sql(
    sql: str | None,
    *,
    file_path: Path | None,
    base64_path: Path | None,
    from_stdin: bool,
    max_input_bytes: int,
) -> tuple[str, str]:
    """Resolve SQL from argument, file, base64 file or stdin. Exactly one source required.

    Returns (sql, source). Raises InputError for undecodable or oversized input.
    """
    given = [name for name, present in (
        ("SQL", bool(sql)),
        ("--file", file_path is not None),
        ("--base64", base64_path is not None),
        ("--from-stdin", from_stdin),
    ) if present]
    if len(given) > 1:
        raise click.UsageError(f"Provide exactly one input, got {', '.join(given)}.")

    if from_stdin:
        if sys.stdin.isatty():
            raise click.UsageError("--from-stdin requires piped input (stdin is a terminal).")
        # One character past the limit is enough for the size check to fail.
        return resolve_input(
            sys.stdin.read(max_input_bytes + 1), None, max_input_bytes=max_input_bytes
        )
    if file_path is not None:
        check_size(file_path.stat().st_size, max_input_bytes)
        return decode_bytes(file_path.read_bytes(), max_input_bytes=max_input_bytes), "file"
    if base64_path is not None:
        check_size(base64_path.stat().st_size * 3 // 4, max_input_bytes)
        encoded = base64_path.read_text(encoding="ascii", errors="replace")
        return decode_file_content(encoded, max_input_bytes=max_input_bytes), "file"
    return resolve_input(sql, None, max_input_bytes=max_input_bytes)

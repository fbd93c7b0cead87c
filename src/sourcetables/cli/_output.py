"""Shared output formatting for CLI commands."""

from __future__ import annotations

import json

from sourcetables.diagnostics import Diagnostic
from sourcetables.diagnostics.render import diagnostic_to_dict, render_json, render_text
from sourcetables.extract import ExtractionResult


def format_result(
    result: ExtractionResult,
    *,
    output_format: str = "text",
    joiner: str = "\n",
) -> str:
    if output_format == "json":
        return json.dumps(render_json(result), indent=2)
    return joiner.join(result.tables)


def format_error(diagnostic: Diagnostic, *, output_format: str = "text") -> str:
    if output_format == "json":
        return json.dumps({"tables": [], "error": diagnostic_to_dict(diagnostic)}, indent=2)
    return render_text([diagnostic])

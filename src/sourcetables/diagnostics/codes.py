"""Stable, searchable diagnostic code registry.

Ranges:
- S00xx  Input handling (command boundary)
- S01xx  Lexing
- S02xx  Statement handling
- S03xx  Table extraction
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DiagnosticCode:
    value: int

    def __str__(self) -> str:
        return f"S{self.value:04d}"


# Input (S00xx)
NO_INPUT = DiagnosticCode(1)
INPUT_TOO_LARGE = DiagnosticCode(2)
BASE64_DECODE_FAILED = DiagnosticCode(3)
NOT_UTF8 = DiagnosticCode(4)

# Lexing (S01xx)
UNTERMINATED_STRING = DiagnosticCode(101)
UNTERMINATED_IDENTIFIER = DiagnosticCode(102)
UNTERMINATED_COMMENT = DiagnosticCode(103)

# Statements (S02xx)
STATEMENT_SKIPPED = DiagnosticCode(201)
DATABASE_SWITCHED = DiagnosticCode(202)
PARSER_FALLBACK = DiagnosticCode(203)

# Table extraction (S03xx)
UNBALANCED_PARENS = DiagnosticCode(301)
UNRESOLVED_REFERENCE = DiagnosticCode(302)
TABLE_FUNCTION_SKIPPED = DiagnosticCode(303)
MALFORMED_CTE = DiagnosticCode(304)

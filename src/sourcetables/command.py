"""Command boundary: `gen_all_source_table`, the call behind the SQL form.

The form sends either pasted text (`input`) or a file as base64 text
(`file_content`). This module turns that payload into SQL, runs the
extraction, and returns one display string. Input problems are the only
failures here, and they come back as plain messages, never exceptions.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Mapping

from sourcetables.diagnostics import Diagnostic, codes
from sourcetables.extract import run_extraction
from sourcetables.settings import Settings, load_settings

NO_INPUT_MESSAGE = "No input provided"
BASE64_ERROR_MESSAGE = "Failed to decode Base64 content"

_DATA_URL_RE = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)
_KEY_NOISE_RE = re.compile(r"[_\-\s]")

# Normalized payload key → gen_all_source_table parameter.
_PARAMS = {"input": "input", "filecontent": "file_content"}


class InputError(Exception):
    """Raised when the payload cannot be turned into SQL text."""

    def __init__(self, diagnostic: Diagnostic, message: str) -> None:
        super().__init__(message)
        self.diagnostic = diagnostic


def check_size(size: int, max_input_bytes: int) -> None:
    if size > max_input_bytes:
        raise InputError(
            Diagnostic.error(
                codes.INPUT_TOO_LARGE, f"input is {size} bytes, limit is {max_input_bytes}"
            ).note("raise extract.max_input_bytes to allow larger scripts"),
            f"Input exceeds maximum size of {max_input_bytes} bytes",
        )


def decode_bytes(raw: bytes, *, max_input_bytes: int) -> str:
    """Decode file bytes as UTF-8 SQL, dropping a leading byte-order mark."""
    check_size(len(raw), max_input_bytes)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InputError(
            Diagnostic.error(codes.NOT_UTF8, f"file is not valid UTF-8: {e}"),
            f"Failed to convert: {e}",
        ) from e
    return text.removeprefix("\ufeff")


def decode_file_content(file_content: str, *, max_input_bytes: int) -> str:
    """Decode base64 file content (optionally a data: URL) into SQL text."""
    payload = "".join(_DATA_URL_RE.sub("", file_content.strip()).split())
    # Decoded size is about 3/4 of the encoded length; refuse before decoding.
    check_size(len(payload) * 3 // 4, max_input_bytes)
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError(
            Diagnostic.error(codes.BASE64_DECODE_FAILED, f"file content is not base64: {e}"),
            BASE64_ERROR_MESSAGE,
        ) from e
    return decode_bytes(raw, max_input_bytes=max_input_bytes)


def resolve_input(
    input: str | None,
    file_content: str | None,
    *,
    max_input_bytes: int,
) -> tuple[str, str]:
    """Pick the SQL text to analyze. Returns (sql, source) where source is "text" or "file".

    Pasted text wins over a file when both are present.
    """
    if input:
        check_size(len(input.encode("utf-8")), max_input_bytes)
        return input, "text"
    if file_content:
        return decode_file_content(file_content, max_input_bytes=max_input_bytes), "file"
    raise InputError(Diagnostic.error(codes.NO_INPUT, "no input provided"), NO_INPUT_MESSAGE)


def gen_all_source_table(
    input: str = "",
    file_content: str | None = None,
    *,
    separator: str | None = None,
    settings: Settings | None = None,
) -> str:
    """Return every source table of the submitted script, one display string.

    Names are joined with `separator`, or with the configured separator
    (newline by default). Input problems return their message instead.
    """
    settings = settings if settings is not None else load_settings()
    try:
        sql, _ = resolve_input(input, file_content, max_input_bytes=settings.max_input_bytes)
    except InputError as e:
        return str(e)

    result = run_extraction(sql, engine=settings.engine, dialect=settings.dialect)
    joiner = separator if separator is not None else settings.joiner
    return joiner.join(result.tables)


def _normalize_key(key: str) -> str:
    return _KEY_NOISE_RE.sub("", key).lower()


def invoke(
    payload: Mapping[str, object],
    *,
    separator: str | None = None,
    settings: Settings | None = None,
) -> str:
    """Bind a frontend payload to `gen_all_source_table`.

    Keys match regardless of case and style, so `file_content`,
    `fileContent` and `FileContent` all reach the same parameter.
    Unknown keys are ignored.
    """
    bound: dict[str, str] = {}
    for key, value in payload.items():
        param = _PARAMS.get(_normalize_key(key))
        if param is not None and value is not None:
            bound[param] = str(value)
    return gen_all_source_table(**bound, separator=separator, settings=settings)

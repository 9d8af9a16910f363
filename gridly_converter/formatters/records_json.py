"""Gridly record JSON serializer.

WHY: Gridly's import endpoint takes a JSON array of records, each
``{"id", "path"?, "cells": [{"columnId", "value"}]}``. Both converters
share this encoding, and the paginated table export must be able to
write a slice without first building the whole document in memory.

HOW: write_document() writes the opening bracket, then encodes and
writes one record at a time, then the closing bracket. serialize() runs
write_document() into a StringIO, so both paths produce byte-identical
text. With validate=True each record is checked against
gridly_records_schema.json with jsonschema before it is written.

RULES:
- Empty input → "[]"
- Compact output (indent=None) is identical to json.dumps(list)
- Pretty output (indent=N) is identical to json.dumps(list, indent=N)
- Numbers and booleans stay native JSON types; NaN and ±inf have no
  JSON form and raise SerializationError
- Non-ASCII text is written as-is (UTF-8 files), not \\u-escaped
- Encoding, I/O, and schema failures raise SerializationError;
  errors raised by the records iterable itself pass through unchanged
"""

from __future__ import annotations

import io
import json
import logging
import textwrap
from pathlib import Path
from typing import Any, Iterable, Optional, TextIO

import jsonschema

from gridly_converter.core.ir import Document, Record
from gridly_converter.errors import SerializationError
from gridly_converter.formatters.base import BaseFormatter, FormatterOutput

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "gridly_records_schema.json"


def _load_schema() -> dict[str, Any]:
    """Load the record document schema from disk.

    Cached at module level after first call to avoid repeated I/O.
    """
    with open(SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


_CACHED_SCHEMA: dict[str, Any] | None = None


def get_schema() -> dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        _CACHED_SCHEMA = _load_schema()
    return _CACHED_SCHEMA


def _record_validator() -> jsonschema.Draft7Validator:
    schema = get_schema()
    record_schema = {"$ref": "#/definitions/record", "definitions": schema["definitions"]}
    return jsonschema.Draft7Validator(record_schema)


def _encode_record(record: Record, indent: Optional[int]) -> str:
    text = json.dumps(record.to_dict(), indent=indent, ensure_ascii=False, allow_nan=False)
    if indent is None:
        return text
    return textwrap.indent(text, " " * indent)


def write_document(
    records: Iterable[Record],
    stream: TextIO,
    indent: Optional[int] = None,
    validate: bool = False,
) -> int:
    """Stream records to ``stream`` as a JSON array.

    Args:
        records: Records to write; may be a lazy iterator.
        stream: Text stream to write to.
        indent: None for compact output, or spaces per indentation level.
        validate: Check each record against the document schema first.

    Returns:
        Number of records written.

    Raises:
        SerializationError: If a record cannot be encoded, fails schema
            validation, or the stream cannot be written.
    """
    validator = _record_validator() if validate else None
    separator = ", " if indent is None else ",\n"
    count = 0

    _write(stream, "[")
    # Errors raised while producing records belong to the caller.
    for record in records:
        try:
            if validator is not None:
                validator.validate(record.to_dict())
            chunk = _encode_record(record, indent)
        except jsonschema.ValidationError as e:
            raise SerializationError(
                f"Record {record.id!r} does not match the Gridly schema: {e.message}"
            ) from e
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to encode record {record.id!r}: {e}") from e
        if count:
            _write(stream, separator)
        elif indent is not None:
            _write(stream, "\n")
        _write(stream, chunk)
        count += 1
    if count and indent is not None:
        _write(stream, "\n")
    _write(stream, "]")

    logger.debug("Wrote %d records", count)
    return count


def _write(stream: TextIO, text: str) -> None:
    try:
        stream.write(text)
    except (OSError, ValueError) as e:
        # ValueError: write to a closed stream
        raise SerializationError(f"Failed to write record document: {e}") from e


def serialize(
    records: Iterable[Record],
    indent: Optional[int] = None,
    validate: bool = False,
) -> str:
    """Return the JSON text of ``records``.

    Raises:
        SerializationError: See write_document().
    """
    buffer = io.StringIO()
    write_document(records, buffer, indent=indent, validate=validate)
    return buffer.getvalue()


class RecordsJsonFormatter(BaseFormatter):
    """Formatter that produces the Gridly record import JSON.

    RULES:
    - Output suffix is "-gridly.json"
    - Schema validation is on by default
    """

    def __init__(self, indent: Optional[int] = None, validate: bool = True) -> None:
        self.indent = indent
        self.validate = validate

    @property
    def name(self) -> str:
        return "Gridly records JSON"

    def format(self, document: Document) -> list[FormatterOutput]:
        content = serialize(document, indent=self.indent, validate=self.validate)
        return [
            FormatterOutput(
                suffix="-gridly.json",
                content=content,
                media_type="application/json",
            )
        ]

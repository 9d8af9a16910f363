"""Document serialization.

WHY: Both converters produce the same Document IR; this package turns
it into the Gridly import JSON (as a string, a formatter output, or a
stream).

RULES:
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from gridly_converter.formatters.base import BaseFormatter, FormatterOutput
from gridly_converter.formatters.records_json import (
    RecordsJsonFormatter,
    serialize,
    write_document,
)

__all__ = [
    "BaseFormatter",
    "FormatterOutput",
    "RecordsJsonFormatter",
    "serialize",
    "write_document",
]

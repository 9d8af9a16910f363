"""Exception types raised by the exporter.

WHY: Callers (CLI, batch drivers, editor integrations) need to tell a
fatal export failure apart from a bad configuration value. Per-cell
problems never reach this module (they are logged and the cell is
dropped), so everything defined here is something a caller must handle.

RULES:
- Every exporter exception derives from GridlyExportError
- ConfigurationError is also a ValueError (bad user-supplied values)
- CultureNotMappedError is also a KeyError (failed lookup)
- NoRowSchemaError and SerializationError abort the whole call
"""

from __future__ import annotations


class GridlyExportError(Exception):
    """Base class for all exporter errors."""


class ConfigurationError(GridlyExportError, ValueError):
    """Raised when configuration values cannot be parsed.

    WHY: Column mappings and culture tables come from environment
    variables or JSON files; a typo there should fail loudly before any
    conversion runs.
    """


class CultureNotMappedError(GridlyExportError, KeyError):
    """Raised when a culture has no counterpart in the culture table.

    RULES:
    - Converters never let this escape; they use the try_* lookup
      and omit the affected cell
    """

    def __init__(self, culture: str) -> None:
        self.culture = culture
        super().__init__(culture)

    def __str__(self) -> str:
        return f"No Gridly culture mapping for '{self.culture}'"


class NoRowSchemaError(GridlyExportError):
    """Raised when a table has no declared row type and cannot be exported."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        super().__init__(f"Table '{table_name}' has no row schema")


class SerializationError(GridlyExportError):
    """Raised when the record document cannot be encoded or written.

    HOW: Wraps the underlying I/O, encoding or schema validation error,
    which stays available as ``__cause__``.
    """

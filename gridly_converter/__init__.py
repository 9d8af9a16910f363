"""Gridly Converter: localization and data table export to Gridly.

WHY: Gridly stores localization content as spreadsheet-like tables.
Localization entries (native text plus translations) and generic data
table rows both have to be turned into Gridly's record import format:
an array of ``{id, path?, cells: [{columnId, value}]}`` objects.

HOW: Two converters share one record IR and one serializer:
  core.localization.convert_entries — localization entries → records
  core.table.convert_table           — table rows (optionally a slice) → records
  formatters.records_json.serialize  — records → JSON text
Settings travel in an immutable ExportConfiguration; cultures are
translated by a CultureMapper.

RULES:
- Converters are pure: no I/O, no global state
- Per-cell problems degrade output; only a missing row schema or a
  serialization failure aborts a call
"""

from gridly_converter.config import ColumnDataType, ColumnInfo, ExportConfiguration
from gridly_converter.core.ir import Cell, Document, Record
from gridly_converter.core.localization import convert_entries
from gridly_converter.core.table import convert_table, iter_table_pages
from gridly_converter.cultures import CultureMapper
from gridly_converter.formatters.records_json import serialize, write_document

__version__ = "0.1.0"

__all__ = [
    "Cell",
    "ColumnDataType",
    "ColumnInfo",
    "CultureMapper",
    "Document",
    "ExportConfiguration",
    "Record",
    "convert_entries",
    "convert_table",
    "iter_table_pages",
    "serialize",
    "write_document",
]

"""Table rows → Gridly records, with paginated export.

WHY: Data tables (item lists, dialogue tables, tuning values) are
exported to Gridly as one record per row, one cell per scalar field.
Large tables are pushed in slices, so the converter must be able to
export rows [start, start + count) in a stable order.

HOW: build_field_plan() walks the row schema once and keeps the
exportable fields in declared order. iter_table_records() then reads
each row in the requested window through those descriptors and
coerces every value according to its type tag. convert_table() collects
the window into a Document; iter_table_pages() repeats that with an
advancing start index.

RULES:
- Row order is table.row_names() order (native key order); pagination
  slices that sequence
- start_index >= row count → empty document, not an error
- No row schema → NoRowSchemaError; an empty table with a schema is fine
- Only fields with array_dim == 1 are exported
- Aggregate fields (array, set, map, struct) never produce cells
- Enumerations and enum-flagged numerics → label string
- Integers → int wrapped to the field's bit width; FLOAT → 32-bit
  precision float (saturating to ±inf past the 32-bit range);
  DOUBLE → float; BOOL → bool
- Anything else → str(value) ("" for None)
"""

from __future__ import annotations

import logging
import math
import struct
from typing import Any, Iterator, Optional, Sequence

from gridly_converter.core.ir import Cell, CellValue, Document, Record
from gridly_converter.core.sources import (
    INTEGER_WIDTHS,
    FieldDescriptor,
    FieldType,
    RowSchema,
    TableHandle,
)
from gridly_converter.errors import NoRowSchemaError

logger = logging.getLogger(__name__)

_TRUE_STRINGS = frozenset({"true", "1", "yes"})


def build_field_plan(schema: RowSchema) -> tuple[FieldDescriptor, ...]:
    """Return the exportable fields of ``schema`` in declared order.

    Computed once per export and reused for every row.
    """
    plan: list[FieldDescriptor] = []
    for descriptor in schema.fields:
        if descriptor.array_dim != 1:
            logger.debug("Skipping fixed-size array field %s[%d]",
                         descriptor.name, descriptor.array_dim)
            continue
        if descriptor.field_type.is_aggregate:
            logger.debug("Skipping unsupported %s field %s",
                         descriptor.field_type.value, descriptor.name)
            continue
        plan.append(descriptor)
    return tuple(plan)


def _enum_label(descriptor: FieldDescriptor, value: Any) -> str:
    if isinstance(value, str):
        return value
    labels = descriptor.enum_labels or {}
    if value is not None and int(value) in labels:
        return labels[int(value)]
    return "" if value is None else str(value)


def _wrap_integer(value: int, field_type: FieldType) -> int:
    bits, signed = INTEGER_WIDTHS[field_type]
    value &= (1 << bits) - 1
    if signed and value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def coerce_field_value(descriptor: FieldDescriptor, value: Any) -> Optional[CellValue]:
    """Convert a raw field value into a cell value.

    Returns None for aggregate types, which are not exported.
    """
    field_type = descriptor.field_type

    if field_type is FieldType.ENUM or descriptor.is_enum_flagged:
        return _enum_label(descriptor, value)

    if field_type.is_integer:
        return _wrap_integer(int(value or 0), field_type)

    if field_type is FieldType.FLOAT:
        number = float(value or 0.0)
        try:
            return struct.unpack("<f", struct.pack("<f", number))[0]
        except OverflowError:
            return math.copysign(math.inf, number)

    if field_type is FieldType.DOUBLE:
        return float(value or 0.0)

    if field_type is FieldType.BOOL:
        return _as_bool(value)

    if field_type.is_aggregate:
        return None

    return "" if value is None else str(value)


def _row_record(row_name: str, row: Any, plan: Sequence[FieldDescriptor]) -> Record:
    cells: list[Cell] = []
    for descriptor in plan:
        value = coerce_field_value(descriptor, descriptor.read(row))
        if value is not None:
            cells.append(Cell(descriptor.export_name, value))
    return Record(id=row_name, cells=tuple(cells))


def _check_window(start_index: int, max_count: Optional[int]) -> None:
    if start_index < 0:
        raise ValueError(f"start_index must be >= 0, got {start_index}")
    if max_count is not None and max_count < 0:
        raise ValueError(f"max_count must be >= 0, got {max_count}")


def iter_table_records(
    table: TableHandle,
    start_index: int = 0,
    max_count: Optional[int] = None,
) -> Iterator[Record]:
    """Yield records for rows [start_index, start_index + max_count).

    The schema check and window validation happen on the first
    ``next()``; pass the iterator straight to write_document() to stream
    a slice without building the whole list.

    Raises:
        NoRowSchemaError: If the table has no row schema.
        ValueError: If start_index or max_count is negative.
    """
    _check_window(start_index, max_count)

    schema = table.row_schema
    if schema is None:
        raise NoRowSchemaError(table.name)

    plan = build_field_plan(schema)
    row_names = table.row_names()
    if start_index >= len(row_names):
        return

    end_index = len(row_names) if max_count is None else min(start_index + max_count, len(row_names))
    for row_name in row_names[start_index:end_index]:
        yield _row_record(str(row_name), table.row(row_name), plan)


def convert_table(
    table: TableHandle,
    start_index: int = 0,
    max_count: Optional[int] = None,
) -> Document:
    """Convert a window of table rows into Gridly records.

    Args:
        table: Table exposing a row schema and rows in native key order.
        start_index: Index of the first row to export.
        max_count: Maximum number of rows; None exports to the end.

    Returns:
        The records of the window (empty when start_index is past the end).

    Raises:
        NoRowSchemaError: If the table has no row schema.
        ValueError: If start_index or max_count is negative.
    """
    document: Document = list(iter_table_records(table, start_index, max_count))
    logger.info("Converted %d rows of table %s starting at %d",
                len(document), table.name, start_index)
    return document


def iter_table_pages(
    table: TableHandle,
    page_size: int,
    start_index: int = 0,
    max_count: Optional[int] = None,
) -> Iterator[tuple[int, Document]]:
    """Yield ``(start_index, document)`` pages covering the rest of the table.

    RULES:
    - Each page is an independent convert_table() call
    - max_count caps the total rows across all pages; None runs to the end
    - An empty window yields one empty page
    - The row order must not change while pages are being produced
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be > 0, got {page_size}")
    _check_window(start_index, max_count)
    if table.row_schema is None:
        raise NoRowSchemaError(table.name)

    row_count = len(table.row_names())
    end_index = row_count if max_count is None else min(start_index + max_count, row_count)
    if start_index >= end_index:
        yield start_index, []
        return

    for page_start in range(start_index, end_index, page_size):
        yield page_start, convert_table(table, page_start, min(page_size, end_index - page_start))

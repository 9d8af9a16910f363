"""Localization entries → Gridly records.

WHY: Gridly organizes translatable text as spreadsheet rows: a record
id, a source-language column, one column per target language, and any
number of metadata columns. Which cells an entry produces depends on
the export configuration, the culture table, and whatever the
localization manifest knows about the entry.

HOW: convert_entries() takes a configuration snapshot, then builds one
Record per entry in input order. Cells are appended in a fixed order:
  1. namespace cell (or the record path in path mode)
  2. source-language cell
  3. SourceLocation metadata cell (+ derived path)
  4. mapped info-metadata cells
  5. target-language cells, in target_cultures() order

RULES:
- Record id is "namespace,key" when use_combined_namespace_id, else key
- A missing manifest context, unmapped metadata key, or unmappable
  culture drops the affected cell only; it never aborts the export
- Source location " - line " is rewritten to ":" (case-sensitive)
- "- line" anywhere in the source location means the text is defined
  in code (path "Code"); otherwise it comes from a string table
  (path "StringTables/<base filename>")
- Number-typed metadata is parsed like C atoi; no leading digits → 0
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from gridly_converter.config import (
    SOURCE_LOCATION_KEY,
    ColumnDataType,
    ColumnInfo,
    ExportConfiguration,
)
from gridly_converter.core.ir import Cell, CellValue, Document, Record
from gridly_converter.core.sources import (
    ContextLookup,
    LocalizationEntry,
    ManifestContext,
    MetadataKind,
    MetadataValue,
)
from gridly_converter.cultures import CultureMapper

logger = logging.getLogger(__name__)

CODE_PATH = "Code"
STRING_TABLES_PATH_PREFIX = "StringTables/"

# Legacy "File.cpp - line 42" encoding written by the gather step.
_LINE_SEPARATOR = " - line "
_LINE_MARKER = "- line"

_ATOI_RE = re.compile(r"\s*([+-]?\d+)", re.ASCII)


def normalize_source_location(source_location: str) -> str:
    """Rewrite "File.cpp - line 42" to "File.cpp:42"."""
    return source_location.replace(_LINE_SEPARATOR, ":")


def derive_text_type_path(source_location: str) -> str:
    """Return the Gridly path for an entry given its source location.

    >>> derive_text_type_path("Source/Game/Hud.cpp - line 12")
    'Code'
    >>> derive_text_type_path("/Game/Localization/Menus.Menus")
    'StringTables/Menus'
    """
    if _LINE_MARKER in source_location:
        return CODE_PATH
    return STRING_TABLES_PATH_PREFIX + base_filename(source_location)


def base_filename(path: str) -> str:
    """File name without directory or extension. Handles both separators."""
    name = re.split(r"[\\/]", path)[-1]
    stem, dot, _ = name.rpartition(".")
    return stem if dot else name


def parse_int_prefix(text: str) -> int:
    """Parse the leading integer of ``text`` the way C ``atoi`` does.

    RULES:
    - Leading whitespace and one sign are allowed
    - Parsing stops at the first non-digit ("12abc" → 12, "3.9" → 3)
    - No digits at all → 0, with a warning logged
    """
    match = _ATOI_RE.match(text)
    if match is None:
        logger.warning("Metadata value %r is not numeric; exporting 0", text)
        return 0
    return int(match.group(1))


def coerce_metadata_value(value: MetadataValue, column: ColumnInfo) -> CellValue:
    """Convert a metadata value into the cell value for ``column``."""
    if column.data_type is ColumnDataType.NUMBER:
        if value.kind is MetadataKind.NUMBER and isinstance(value.value, int):
            return value.value
        return parse_int_prefix(value.to_string())
    return value.to_string()


def _namespace_cells(
    entry: LocalizationEntry,
    config: ExportConfiguration,
) -> List[Cell]:
    if config.export_namespace and not config.use_path_as_namespace and config.namespace_column_id:
        return [Cell(config.namespace_column_id, entry.namespace)]
    return []


def _metadata_cells(
    context: ManifestContext,
    config: ExportConfiguration,
) -> tuple[List[Cell], Optional[str]]:
    """Cells from the manifest context, plus the path derived from it (if any)."""
    cells: List[Cell] = []
    path: Optional[str] = None

    source_column = config.metadata_mapping.get(SOURCE_LOCATION_KEY)
    if source_column is not None:
        cells.append(Cell(source_column.name, normalize_source_location(context.source_location)))
        if not config.use_path_as_namespace and config.export_text_type_as_path:
            path = derive_text_type_path(context.source_location)

    for meta_key, meta_value in context.info_metadata.items():
        column = config.metadata_mapping.get(meta_key)
        if column is None:
            continue
        cells.append(Cell(column.name, coerce_metadata_value(meta_value, column)))

    return cells, path


def _target_cells(
    entry: LocalizationEntry,
    config: ExportConfiguration,
    cultures: CultureMapper,
) -> List[Cell]:
    cells: List[Cell] = []
    for culture in cultures.target_cultures():
        if culture == entry.native_culture:
            continue
        text = entry.localized_text(culture)
        if text is None:
            continue
        backend = cultures.try_to_backend_culture(culture)
        if backend is None:
            logger.debug("Skipping target culture %s for %s: not mapped", culture, entry.key)
            continue
        cells.append(Cell(config.target_language_column_id_prefix + backend, text))
    return cells


def convert_entry(
    entry: LocalizationEntry,
    config: ExportConfiguration,
    cultures: CultureMapper,
    include_targets: bool = True,
    context: ManifestContext | None = None,
) -> Record:
    """Build the Record for a single entry.

    ``config`` is used as given; convert_entries() is responsible for
    passing a snapshot.
    """
    if config.use_combined_namespace_id:
        record_id = f"{entry.namespace},{entry.key}"
    else:
        record_id = entry.key

    path: Optional[str] = None
    if config.export_namespace and config.use_path_as_namespace:
        path = entry.namespace
    cells = _namespace_cells(entry, config)

    native_backend = cultures.try_to_backend_culture(entry.native_culture)
    if native_backend is not None:
        cells.append(Cell(config.source_language_column_id_prefix + native_backend, entry.native_text))
    else:
        logger.debug(
            "No source cell for %s: native culture %s is not mapped",
            entry.key, entry.native_culture,
        )

    if context is not None:
        meta_cells, derived_path = _metadata_cells(context, config)
        cells.extend(meta_cells)
        if derived_path is not None:
            path = derived_path

    if include_targets:
        cells.extend(_target_cells(entry, config, cultures))

    return Record(id=record_id, cells=tuple(cells), path=path)


def convert_entries(
    entries: Iterable[LocalizationEntry],
    config: ExportConfiguration,
    cultures: CultureMapper,
    include_targets: bool = True,
    context_lookup: ContextLookup | None = None,
) -> Document:
    """Convert localization entries into Gridly records, in input order.

    Args:
        entries: Entries to export.
        config: Export settings; a snapshot is taken before the first entry.
        cultures: Culture table and target cultures.
        include_targets: Emit target-language cells for existing translations.
        context_lookup: Optional (namespace, key) → ManifestContext lookup.

    Returns:
        One Record per entry.
    """
    config = config.snapshot()

    if config.export_namespace and not config.namespace_column_id:
        logger.warning("Namespace export requested but no namespace column id is set; "
                       "namespaces will not be exported")

    document: Document = []
    for entry in entries:
        context = context_lookup(entry.namespace, entry.key) if context_lookup else None
        document.append(convert_entry(entry, config, cultures, include_targets, context))

    logger.info("Converted %d localization entries", len(document))
    return document

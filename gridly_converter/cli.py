"""Command-line driver for exporting localization entries and tables.

WHY: Editor tooling dumps localization entries, manifests, and data
tables to JSON. Build scripts need a single command that turns those
dumps into Gridly import documents, including paginated export of
large tables.

HOW: argparse with two subcommands. ``entries`` loads a list of
localization entries (and optionally a manifest), runs convert_entries,
and saves one document. ``table`` loads a table dump and runs
convert_table for one window, or iter_table_pages when --page-size is
given. Configuration comes from GRIDLY_* environment variables (.env
supported), with a few flags overriding it. Status messages go to
stderr; output files are saved next to the input (or to --output-dir).

RULES:
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-gridly-2.json)
- Pages: {stem}-page-{n}-gridly.json, n starting at 1
- Status output goes to stderr (not stdout)
- Fatal errors print "Error: ..." to stderr and exit with status 1
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from gridly_converter.config import ExportConfiguration, parse_culture_list, parse_metadata_mapping
from gridly_converter.core.ir import Document
from gridly_converter.core.localization import convert_entries
from gridly_converter.core.sources import InMemoryTable, LocalizationEntry, ManifestIndex
from gridly_converter.core.table import convert_table, iter_table_pages
from gridly_converter.cultures import CultureMapper
from gridly_converter.errors import GridlyExportError
from gridly_converter.formatters.base import FormatterOutput
from gridly_converter.formatters.records_json import RecordsJsonFormatter


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _load_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding numeric suffix on conflict.

    WHY: Exports are re-run often; overwriting a previous document that
    has not been uploaded yet would lose it.

    RULES:
    - First attempt: {stem}{suffix} (e.g. strings-gridly.json)
    - Conflict: split suffix at last dot, insert counter before extension
      (e.g. strings-gridly-2.json)
    - Counter starts at 2 and increments
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(
    output: FormatterOutput,
    stem: str,
    output_dir: Path,
) -> Path:
    """Save a single formatter output to disk and return its path."""
    path = _resolve_output_path(stem, output.suffix, output_dir)

    if isinstance(output.content, bytes):
        path.write_bytes(output.content)
    else:
        path.write_text(output.content, encoding="utf-8")

    return path


def _build_config(args: argparse.Namespace) -> ExportConfiguration:
    """Environment configuration with command-line overrides applied."""
    config = ExportConfiguration.from_env()
    overrides: dict = {}
    if args.namespace_column is not None:
        overrides["namespace_column_id"] = args.namespace_column
    if args.combined_namespace_id is not None:
        overrides["use_combined_namespace_id"] = args.combined_namespace_id
    if args.text_type_as_path is not None:
        overrides["export_text_type_as_path"] = args.text_type_as_path
    if args.metadata_mapping:
        overrides["metadata_mapping"] = parse_metadata_mapping(_load_json(Path(args.metadata_mapping)))
    if overrides:
        config = dataclasses.replace(config, **overrides)
    return config


def _build_cultures(args: argparse.Namespace) -> CultureMapper:
    mapper = CultureMapper.from_config()
    if args.target_cultures:
        mapper = mapper.with_target_cultures(parse_culture_list(args.target_cultures))
    return mapper


def _save_document(
    document: Document,
    stem: str,
    output_dir: Path,
    formatter: RecordsJsonFormatter,
) -> Path:
    output = formatter.format(document)[0]
    path = _save_output(output, stem, output_dir)
    _status("  Saved: {} ({} records)".format(path.name, len(document)))
    return path


def _run_entries(args: argparse.Namespace, input_path: Path, output_dir: Path) -> None:
    config = _build_config(args)
    cultures = _build_cultures(args)

    raw = _load_json(input_path)
    raw_entries = raw.get("entries", []) if isinstance(raw, dict) else raw
    entries = [LocalizationEntry.from_dict(item) for item in raw_entries]
    _status("Loaded {} localization entries".format(len(entries)))

    lookup: Optional[ManifestIndex] = None
    if args.manifest:
        lookup = ManifestIndex.from_dict(_load_json(Path(args.manifest)))
        _status("  Manifest: {} ({} contexts)".format(args.manifest, len(lookup)))

    document = convert_entries(
        entries,
        config,
        cultures,
        include_targets=args.targets,
        context_lookup=lookup,
    )
    formatter = RecordsJsonFormatter(indent=args.indent, validate=args.validate)
    _save_document(document, input_path.stem, output_dir, formatter)


def _run_table(args: argparse.Namespace, input_path: Path, output_dir: Path) -> None:
    table = InMemoryTable.from_dict(_load_json(input_path))
    _status("Loaded table {} ({} rows)".format(table.name or input_path.stem, len(table)))
    formatter = RecordsJsonFormatter(indent=args.indent, validate=args.validate)

    if args.page_size:
        for page_number, (start, document) in enumerate(
            iter_table_pages(table, args.page_size, args.start, args.max_count), start=1
        ):
            _status("  Page {}: rows {}-{}".format(page_number, start, start + len(document)))
            _save_document(
                document,
                "{}-page-{}".format(input_path.stem, page_number),
                output_dir,
                formatter,
            )
        return

    document = convert_table(table, args.start, args.max_count)
    _save_document(document, input_path.stem, output_dir, formatter)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without running an export.
    """
    parser = argparse.ArgumentParser(
        prog="gridly_converter",
        description="Convert localization entries and data tables into "
                    "Gridly record import JSON.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("input_file", help="Path to the JSON dump to convert.")
    common.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )
    common.add_argument(
        "--indent",
        type=int,
        default=None,
        help="Pretty-print with this many spaces per level (default: compact).",
    )
    common.add_argument(
        "--validate",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Validate records against the Gridly schema (default: %(default)s).",
    )

    entries = subparsers.add_parser(
        "entries", parents=[common], help="Export localization entries."
    )
    entries.add_argument(
        "--manifest",
        default=None,
        help="Path to a manifest JSON ({namespace: {key: context}}).",
    )
    entries.add_argument(
        "--targets",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Include target-language translations (default: %(default)s).",
    )
    entries.add_argument(
        "--target-cultures",
        default=None,
        help="Comma-separated target cultures (default: GRIDLY_TARGET_CULTURES).",
    )
    entries.add_argument(
        "--namespace-column",
        default=None,
        help='Namespace column id; "path" puts the namespace in the record path.',
    )
    entries.add_argument(
        "--combined-namespace-id",
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Use "namespace,key" as record id.',
    )
    entries.add_argument(
        "--text-type-as-path",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Derive the record path from the source location.",
    )
    entries.add_argument(
        "--metadata-mapping",
        default=None,
        help="Path to a metadata mapping JSON ({metaKey: {name, type}}).",
    )

    table = subparsers.add_parser("table", parents=[common], help="Export a data table.")
    table.add_argument("--start", type=int, default=0, help="First row index (default: 0).")
    table.add_argument(
        "--max-count",
        type=int,
        default=None,
        help="Maximum number of rows to export (default: all).",
    )
    table.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Split the export into files of this many rows.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        print("Error: File not found: {}".format(input_path), file=sys.stderr)
        sys.exit(1)

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        print("Error: Output directory does not exist: {}".format(output_dir), file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "entries":
            _run_entries(args, input_path, output_dir)
        else:
            _run_table(args, input_path, output_dir)
    except (GridlyExportError, ValueError, KeyError, OSError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    _status("Done.")


if __name__ == "__main__":
    main()

"""Unit tests for the localization record converter.

WHY: Gridly imports records by id and column id. A wrong id creates
duplicate rows; a wrong column id silently writes text into the wrong
language. These tests pin down every configuration switch.

HOW: Tests build entries and manifest contexts from conftest fixtures
and check record ids, paths, and cells (including their order).

RULES:
- Cell order is asserted exactly where it is part of the contract
"""

import dataclasses
import logging

import pytest

from gridly_converter.config import ColumnDataType, ColumnInfo, ExportConfiguration
from gridly_converter.core.ir import Cell
from gridly_converter.core.localization import (
    base_filename,
    coerce_metadata_value,
    convert_entries,
    convert_entry,
    derive_text_type_path,
    normalize_source_location,
    parse_int_prefix,
)
from gridly_converter.core.sources import (
    LocalizationEntry,
    ManifestContext,
    MetadataKind,
    MetadataValue,
)
from gridly_converter.cultures import CultureMapper


def _entry(**overrides):
    values = dict(
        key="Greeting",
        namespace="Menus",
        native_culture="en",
        native_text="Hello",
        translations={"fr": "Bonjour"},
    )
    values.update(overrides)
    return LocalizationEntry(**values)


def _column_ids(record):
    return [cell.column_id for cell in record.cells]


class TestRecordId:

    def test_plain_key(self, cultures):
        record = convert_entry(_entry(), ExportConfiguration(), cultures)
        assert record.id == "Greeting"

    def test_combined_namespace_key(self, cultures):
        config = ExportConfiguration(use_combined_namespace_id=True)
        record = convert_entry(_entry(), config, cultures)
        assert record.id == "Menus,Greeting"

    def test_ids_follow_input_order(self, entries, cultures):
        document = convert_entries(entries, ExportConfiguration(), cultures)
        assert [r.id for r in document] == ["Greeting", "Quit"]


class TestNamespace:

    def test_path_mode_sets_path_and_no_cell(self, cultures):
        config = ExportConfiguration(namespace_column_id="path")
        record = convert_entry(_entry(), config, cultures)
        assert record.path == "Menus"
        assert "path" not in _column_ids(record)

    def test_column_mode_emits_first_cell(self, cultures):
        config = ExportConfiguration(namespace_column_id="namespace")
        record = convert_entry(_entry(), config, cultures)
        assert record.cells[0] == Cell("namespace", "Menus")
        assert record.path is None

    def test_empty_column_id_emits_nothing(self, cultures):
        config = ExportConfiguration(namespace_column_id="")
        record = convert_entry(_entry(), config, cultures)
        assert record.path is None
        assert _column_ids(record) == ["src_enUS", "tg_frFR"]

    def test_combined_id_suppresses_namespace(self, cultures):
        config = ExportConfiguration(use_combined_namespace_id=True, namespace_column_id="namespace")
        record = convert_entry(_entry(), config, cultures)
        assert "namespace" not in _column_ids(record)

    def test_combined_id_with_also_export(self, cultures):
        config = ExportConfiguration(
            use_combined_namespace_id=True,
            also_export_namespace_column=True,
            namespace_column_id="path",
        )
        record = convert_entry(_entry(), config, cultures)
        assert record.id == "Menus,Greeting"
        assert record.path == "Menus"

    def test_empty_column_id_logs_warning(self, entries, cultures, caplog):
        config = ExportConfiguration(namespace_column_id="")
        with caplog.at_level(logging.WARNING):
            convert_entries(entries, config, cultures)
        assert "namespace column" in caplog.text


class TestSourceLanguage:

    def test_source_cell_uses_prefix_and_backend_code(self, cultures):
        config = ExportConfiguration(source_language_column_id_prefix="source_")
        record = convert_entry(_entry(), config, cultures)
        assert record.cell("source_enUS") == Cell("source_enUS", "Hello")

    def test_unmapped_native_culture_skips_only_source_cell(self, cultures):
        entry = _entry(native_culture="xx", translations={"fr": "Bonjour"})
        record = convert_entry(entry, ExportConfiguration(), cultures)
        assert _column_ids(record) == ["tg_frFR"]


class TestTargetLanguages:

    def test_only_translated_non_native_cultures(self, cultures):
        # native en, targets [en, fr, de], translation only for fr
        entry = _entry(translations={"fr": "Bonjour"})
        record = convert_entry(entry, ExportConfiguration(), cultures)
        targets = [c for c in record.cells if c.column_id.startswith("tg_")]
        assert targets == [Cell("tg_frFR", "Bonjour")]

    def test_native_culture_never_a_target(self, cultures):
        entry = _entry(translations={"en": "Hello", "fr": "Bonjour"})
        record = convert_entry(entry, ExportConfiguration(), cultures)
        assert record.cell("tg_enUS") is None

    def test_target_order_follows_target_cultures(self, cultures):
        entry = _entry(translations={"de": "Hallo", "fr": "Bonjour"})
        record = convert_entry(entry, ExportConfiguration(), cultures)
        assert _column_ids(record)[-2:] == ["tg_frFR", "tg_deDE"]

    def test_unmappable_target_is_skipped(self):
        mapper = CultureMapper({"en": "enUS", "fr": "frFR"}, ["fr", "pt"])
        entry = _entry(translations={"fr": "Bonjour", "pt": "Olá"})
        record = convert_entry(entry, ExportConfiguration(), mapper)
        assert _column_ids(record) == ["src_enUS", "tg_frFR"]

    def test_include_targets_false(self, cultures):
        record = convert_entry(_entry(), ExportConfiguration(), cultures, include_targets=False)
        assert _column_ids(record) == ["src_enUS"]


class TestSourceLocation:

    def test_normalize_line_suffix(self):
        assert normalize_source_location("MyFile.cpp - line 42") == "MyFile.cpp:42"

    def test_normalize_is_case_sensitive(self):
        assert normalize_source_location("MyFile.cpp - Line 42") == "MyFile.cpp - Line 42"

    def test_code_path(self):
        assert derive_text_type_path("Source/Hud.cpp - line 7") == "Code"

    def test_string_table_path(self):
        assert derive_text_type_path("Content/Loc/Strings.csv") == "StringTables/Strings"

    def test_base_filename_handles_backslashes(self):
        assert base_filename("Content\\Loc\\Menu.Strings.csv") == "Menu.Strings"
        assert base_filename("NoExtension") == "NoExtension"

    def test_cell_emitted_with_context(self, cultures, config, code_context):
        record = convert_entry(_entry(), config, cultures, context=code_context)
        assert record.cell("sourceLocation") == Cell(
            "sourceLocation", "Source/Game/MainMenu.cpp:42"
        )

    def test_no_cell_without_mapping(self, cultures, code_context):
        config = ExportConfiguration(namespace_column_id="")
        record = convert_entry(_entry(), config, cultures, context=code_context)
        assert record.cell("sourceLocation") is None

    def test_text_type_path_from_code(self, cultures, config, code_context):
        config = dataclasses.replace(config, export_text_type_as_path=True)
        record = convert_entry(_entry(), config, cultures, context=code_context)
        assert record.path == "Code"

    def test_text_type_path_from_string_table(self, cultures, config):
        config = dataclasses.replace(config, export_text_type_as_path=True)
        context = ManifestContext(source_location="Content/Loc/Strings.csv")
        record = convert_entry(_entry(), config, cultures, context=context)
        assert record.path == "StringTables/Strings"

    def test_text_type_path_ignored_in_path_mode(self, cultures, config, code_context):
        config = dataclasses.replace(
            config, export_text_type_as_path=True, namespace_column_id="path"
        )
        record = convert_entry(_entry(), config, cultures, context=code_context)
        assert record.path == "Menus"


class TestMetadata:

    def test_mapped_metadata_cells_in_order(self, entries, cultures, config, manifest):
        document = convert_entries(entries, config, cultures, context_lookup=manifest)
        greeting = document[0]
        assert _column_ids(greeting) == [
            "namespace",
            "src_enUS",
            "sourceLocation",
            "comment",
            "maxLength",
            "tg_frFR",
        ]
        assert greeting.cell("maxLength").value == 24

    def test_unmapped_metadata_ignored(self, cultures, config):
        context = ManifestContext(info_metadata={"Speaker": MetadataValue.from_json("Bob")})
        record = convert_entry(_entry(), config, cultures, context=context)
        assert all(c.value != "Bob" for c in record.cells)

    def test_missing_context_has_no_metadata(self, entries, cultures, config):
        document = convert_entries(entries, config, cultures, context_lookup=lambda ns, key: None)
        assert document[0].cell("sourceLocation") is None
        assert document[0].cell("comment") is None

    def test_number_column_from_numeric_value(self):
        column = ColumnInfo("n", ColumnDataType.NUMBER)
        assert coerce_metadata_value(MetadataValue.from_json(7), column) == 7
        assert coerce_metadata_value(MetadataValue.from_json(7.9), column) == 7

    def test_string_column_from_number(self):
        column = ColumnInfo("s")
        assert coerce_metadata_value(MetadataValue.from_json(3), column) == "3"
        assert coerce_metadata_value(MetadataValue.from_json(True), column) == "true"

    def test_non_numeric_string_is_zero(self, caplog):
        column = ColumnInfo("n", ColumnDataType.NUMBER)
        with caplog.at_level(logging.WARNING):
            assert coerce_metadata_value(MetadataValue.from_json("abc"), column) == 0
        assert "not numeric" in caplog.text


class TestParseIntPrefix:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("42", 42), ("  -7", -7), ("+3", 3), ("12abc", 12), ("3.9", 3), ("", 0), ("x1", 0),
            ("\u0663", 0), ("7\u0663", 7),
        ],
    )
    def test_atoi_semantics(self, text, expected):
        assert parse_int_prefix(text) == expected


class TestMetadataValue:

    def test_bool_tagged_before_number(self):
        assert MetadataValue.from_json(True).kind is MetadataKind.BOOLEAN

    def test_array_to_string(self):
        assert MetadataValue.from_json(["a", 1]).to_string() == '["a",1]'

    def test_integral_float_to_string(self):
        assert MetadataValue.from_json(5.0).to_string() == "5"


class TestConfigurationSnapshot:

    def test_caller_mapping_mutation_is_not_seen(self, cultures):
        mapping = {"Comment": ColumnInfo("comment")}
        config = ExportConfiguration(metadata_mapping=mapping)
        mapping["Comment"] = ColumnInfo("changed")
        context = ManifestContext(info_metadata={"Comment": MetadataValue.from_json("c")})
        document = convert_entries([_entry()], config, cultures, context_lookup=lambda ns, k: context)
        assert document[0].cell("comment") is not None
        assert document[0].cell("changed") is None

"""Shared test fixtures for the gridly_converter test suite.

WHY: Most test modules need the same culture table, localization
entries, manifest contexts, and a typed data table. Centralizing them
here keeps expectations consistent across modules.

HOW: Pytest fixtures build small, hand-written inputs; module-level
constants hold the raw JSON shapes so CLI tests can dump them to disk.

RULES:
- Target cultures are ["en", "fr", "de"] in that order
- The sample table has ten rows named Row_0 .. Row_9 in order
- GRIDLY_* environment variables are cleared for every test
"""

import os
from typing import Any, Dict, List

import pytest

from gridly_converter.config import ColumnDataType, ColumnInfo, ExportConfiguration
from gridly_converter.core.sources import (
    InMemoryTable,
    LocalizationEntry,
    ManifestContext,
    ManifestIndex,
    MetadataValue,
)
from gridly_converter.cultures import CultureMapper

CULTURE_MAP: Dict[str, str] = {
    "en": "enUS",
    "fr": "frFR",
    "de": "deDE",
    "ja": "jaJP",
}

TARGET_CULTURES: List[str] = ["en", "fr", "de"]

RAW_ENTRIES: List[Dict[str, Any]] = [
    {
        "key": "Greeting",
        "namespace": "Menus",
        "native_culture": "en",
        "native_text": "Hello",
        "translations": {"en": "Hello", "fr": "Bonjour"},
    },
    {
        "key": "Quit",
        "namespace": "Menus",
        "native_culture": "en",
        "native_text": "Quit",
        "translations": {"fr": "Quitter", "de": "Beenden"},
    },
]

RAW_MANIFEST: Dict[str, Any] = {
    "Menus": {
        "Greeting": {
            "source_location": "Source/Game/MainMenu.cpp - line 42",
            "info_metadata": {"Comment": "Shown on title screen", "MaxLength": "24"},
        },
        "Quit": {
            "source_location": "/Game/Localization/MenuStrings.MenuStrings",
            "info_metadata": {"Comment": "Quit button"},
        },
    },
}

RAW_TABLE: Dict[str, Any] = {
    "name": "DT_Items",
    "row_struct": {
        "name": "ItemRow",
        "fields": [
            {"name": "DisplayName", "type": "text"},
            {"name": "Price", "type": "int32"},
            {"name": "Weight", "type": "double"},
            {"name": "Stackable", "type": "bool"},
            {"name": "Rarity", "type": "enum", "enum_labels": ["Common", "Rare", "Epic"]},
            {"name": "Tags", "type": "array"},
            {"name": "Slots", "type": "int32", "array_dim": 3},
        ],
    },
    "rows": {
        "Row_{}".format(i): {
            "DisplayName": "Item {}".format(i),
            "Price": i * 10,
            "Weight": i + 0.5,
            "Stackable": i % 2 == 0,
            "Rarity": i % 3,
            "Tags": ["a", "b"],
            "Slots": [1, 2, 3],
        }
        for i in range(10)
    },
}


@pytest.fixture(autouse=True)
def _clean_gridly_env(monkeypatch):
    """Keep tests independent of a developer's GRIDLY_* settings."""
    for name in list(os.environ):
        if name.startswith("GRIDLY_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cultures():
    return CultureMapper(CULTURE_MAP, TARGET_CULTURES)


@pytest.fixture
def config():
    """Column-id mode with SourceLocation and two metadata columns mapped."""
    return ExportConfiguration(
        namespace_column_id="namespace",
        metadata_mapping={
            "SourceLocation": ColumnInfo("sourceLocation"),
            "Comment": ColumnInfo("comment"),
            "MaxLength": ColumnInfo("maxLength", ColumnDataType.NUMBER),
        },
    )


@pytest.fixture
def entries():
    return [LocalizationEntry.from_dict(item) for item in RAW_ENTRIES]


@pytest.fixture
def manifest():
    return ManifestIndex.from_dict(RAW_MANIFEST)


@pytest.fixture
def code_context():
    return ManifestContext(
        source_location="Source/Game/MainMenu.cpp - line 42",
        info_metadata={"Comment": MetadataValue.from_json("Title")},
    )


@pytest.fixture
def item_table():
    return InMemoryTable.from_dict(RAW_TABLE)

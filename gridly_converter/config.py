"""Export configuration, culture tables, and .env loading.

WHY: Every conversion is driven by the same handful of switches:
namespace handling, column id prefixes, metadata-to-column mapping.
Keeping them in one immutable object that is passed into each call
means a caller can change settings between pagination calls without
corrupting an export that is already running.

HOW: python-dotenv loads the .env file on import. ExportConfiguration
is a frozen dataclass; from_env() builds one from GRIDLY_* environment
variables. The culture table is plain data (DEFAULT_CULTURE_MAP) so it
is easy to read and extend.

RULES:
- ExportConfiguration is never mutated; snapshot() returns an
  independent read-only copy
- namespace_column_id == "path" selects path mode (namespace goes to
  the record's path field, not to a cell)
- Metadata mapping JSON: {metaKey: {"name": str, "type": "string"|"number"}}
- Boolean env values: "true"/"1"/"yes"/"on" (case-insensitive) are true
- GRIDLY_TARGET_CULTURES is comma-separated; order is kept, duplicates dropped
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from dotenv import load_dotenv

from gridly_converter.errors import ConfigurationError

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Culture mapping: host culture → Gridly language code
# ---------------------------------------------------------------------------

DEFAULT_CULTURE_MAP: dict[str, str] = {
    "ar": "arSA",
    "cs": "csCZ",
    "da": "daDK",
    "de": "deDE",
    "en": "enUS",
    "en-GB": "enGB",
    "en-US": "enUS",
    "es": "esES",
    "es-419": "esMX",
    "es-MX": "esMX",
    "fi": "fiFI",
    "fr": "frFR",
    "fr-CA": "frCA",
    "hi": "hiIN",
    "hu": "huHU",
    "it": "itIT",
    "ja": "jaJP",
    "ko": "koKR",
    "nl": "nlNL",
    "no": "noNO",
    "pl": "plPL",
    "pt": "ptPT",
    "pt-BR": "ptBR",
    "ro": "roRO",
    "ru": "ruRU",
    "sv": "svSE",
    "th": "thTH",
    "tr": "trTR",
    "uk": "ukUA",
    "vi": "viVN",
    "zh-Hans": "zhCN",
    "zh-Hant": "zhTW",
}

PATH_NAMESPACE_COLUMN = "path"
"""Special namespace column id that routes the namespace to the record path."""

SOURCE_LOCATION_KEY = "SourceLocation"
"""Reserved metadata mapping key for the manifest's source location."""

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class ColumnDataType(str, Enum):
    """Value type of a Gridly column that receives metadata."""

    STRING = "string"
    NUMBER = "number"


@dataclass(frozen=True)
class ColumnInfo:
    """Target column for one metadata key.

    RULES:
    - name: Gridly column id the metadata value is written to
    - data_type: how the metadata value is coerced before writing
    """

    name: str
    data_type: ColumnDataType = ColumnDataType.STRING

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ColumnInfo:
        """Parse ``{"name": ..., "type": ...}``; type defaults to string."""
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Column mapping entry needs a non-empty 'name': {data!r}")
        raw_type = str(data.get("type", ColumnDataType.STRING.value)).lower()
        try:
            data_type = ColumnDataType(raw_type)
        except ValueError:
            allowed = ", ".join(t.value for t in ColumnDataType)
            raise ConfigurationError(
                f"Unknown column data type '{raw_type}' for column '{name}'. "
                f"Allowed: {allowed}"
            ) from None
        return cls(name=name, data_type=data_type)


def parse_metadata_mapping(data: Mapping[str, Any]) -> dict[str, ColumnInfo]:
    """Parse a JSON metadata mapping into ColumnInfo entries."""
    if not isinstance(data, Mapping):
        raise ConfigurationError("Metadata mapping must be a JSON object")
    mapping: dict[str, ColumnInfo] = {}
    for meta_key, info in data.items():
        if isinstance(info, ColumnInfo):
            mapping[meta_key] = info
        elif isinstance(info, str):
            # Shorthand: {"Comment": "comment"} maps to a string column
            mapping[meta_key] = ColumnInfo(name=info)
        elif isinstance(info, Mapping):
            mapping[meta_key] = ColumnInfo.from_dict(info)
        else:
            raise ConfigurationError(f"Invalid column mapping for '{meta_key}': {info!r}")
    return mapping


@dataclass(frozen=True)
class ExportConfiguration:
    """Settings that shape every exported record.

    WHY: Settings are an explicit, immutable argument so that the
    settings seen at the start of a call are the settings used for the
    whole call, even when a driver reconfigures between pages.

    RULES:
    - use_combined_namespace_id: record id is "namespace,key" instead of key
    - also_export_namespace_column: emit the namespace even with combined ids
    - namespace_column_id: column for the namespace; "path" selects path mode;
      empty means no namespace cell at all
    - export_text_type_as_path: derive path ("Code" / "StringTables/<file>")
      from the source location
    """

    use_combined_namespace_id: bool = False
    also_export_namespace_column: bool = False
    namespace_column_id: str = PATH_NAMESPACE_COLUMN
    source_language_column_id_prefix: str = "src_"
    target_language_column_id_prefix: str = "tg_"
    metadata_mapping: Mapping[str, ColumnInfo] = field(default_factory=dict)
    export_text_type_as_path: bool = False

    def __post_init__(self) -> None:
        frozen = MappingProxyType(parse_metadata_mapping(self.metadata_mapping))
        object.__setattr__(self, "metadata_mapping", frozen)

    @property
    def export_namespace(self) -> bool:
        return not self.use_combined_namespace_id or self.also_export_namespace_column

    @property
    def use_path_as_namespace(self) -> bool:
        return self.namespace_column_id == PATH_NAMESPACE_COLUMN

    def snapshot(self) -> ExportConfiguration:
        """Return an equal configuration that shares no mutable state."""
        return replace(self, metadata_mapping=dict(self.metadata_mapping))

    @classmethod
    def from_env(cls) -> ExportConfiguration:
        """Build a configuration from GRIDLY_* environment variables.

        RULES:
        - Unset variables fall back to the dataclass defaults
        - GRIDLY_METADATA_MAPPING must be a JSON object
        """
        defaults = cls()
        return cls(
            use_combined_namespace_id=_env_bool(
                "GRIDLY_USE_COMBINED_NAMESPACE_ID", defaults.use_combined_namespace_id
            ),
            also_export_namespace_column=_env_bool(
                "GRIDLY_ALSO_EXPORT_NAMESPACE_COLUMN", defaults.also_export_namespace_column
            ),
            namespace_column_id=os.getenv(
                "GRIDLY_NAMESPACE_COLUMN_ID", defaults.namespace_column_id
            ).strip(),
            source_language_column_id_prefix=os.getenv(
                "GRIDLY_SOURCE_LANGUAGE_COLUMN_ID_PREFIX",
                defaults.source_language_column_id_prefix,
            ),
            target_language_column_id_prefix=os.getenv(
                "GRIDLY_TARGET_LANGUAGE_COLUMN_ID_PREFIX",
                defaults.target_language_column_id_prefix,
            ),
            metadata_mapping=parse_metadata_mapping(
                _env_json("GRIDLY_METADATA_MAPPING", {})
            ),
            export_text_type_as_path=_env_bool(
                "GRIDLY_EXPORT_TEXT_TYPE_AS_PATH", defaults.export_text_type_as_path
            ),
        )


def load_culture_map() -> dict[str, str]:
    """Return the default culture table with GRIDLY_CULTURE_MAP overrides applied."""
    overrides = _env_json("GRIDLY_CULTURE_MAP", {})
    if not isinstance(overrides, dict):
        raise ConfigurationError("GRIDLY_CULTURE_MAP must be a JSON object")
    culture_map = dict(DEFAULT_CULTURE_MAP)
    culture_map.update({str(k): str(v) for k, v in overrides.items()})
    return culture_map


def load_target_cultures() -> list[str]:
    """Return the ordered target cultures from GRIDLY_TARGET_CULTURES."""
    raw = os.getenv("GRIDLY_TARGET_CULTURES", "")
    return parse_culture_list(raw)


def parse_culture_list(raw: str) -> list[str]:
    """Split a comma-separated culture list, keeping order and dropping duplicates."""
    cultures: list[str] = []
    for part in raw.split(","):
        culture = part.strip()
        if culture and culture not in cultures:
            cultures.append(culture)
    return cultures


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_json(name: str, default: Any) -> Any:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{name} is not valid JSON: {e}") from e

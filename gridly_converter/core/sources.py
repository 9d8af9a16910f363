"""Input models: localization entries, manifest context, and table rows.

WHY: The converters never talk to a localization store or a table
asset directly. Callers materialize what they have into these small,
typed objects first, so conversion logic is testable with plain data
and independent of the host application.

HOW: Localization side:
  LocalizationEntry — key, namespace, native text, translations
  MetadataValue     — tagged variant over string/number/bool/array/object
  ManifestContext   — source location + info metadata for one entry
  ManifestIndex     — (namespace, key) → ManifestContext lookup
Table side:
  FieldType         — type tag of a row field (with integer widths)
  FieldDescriptor   — identifier, type tag, array dim, accessor
  RowSchema         — ordered field descriptors of a row type
  TableHandle       — protocol for anything exposing schema + rows
  InMemoryTable     — dict-backed TableHandle used by the CLI and tests

RULES:
- from_dict() factories accept the JSON shapes written by the editor
  tooling and ignore unknown keys
- Table row order is the insertion order of the rows mapping; this is
  the pagination order
- Descriptors are immutable; their accessor is excluded from equality
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence

# ---------------------------------------------------------------------------
# Localization side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LocalizationEntry:
    """One localizable text with its native string and translations.

    RULES:
    - key is unique within its namespace
    - translations maps culture → translated text; the native culture
      may or may not appear in it
    """

    key: str
    namespace: str
    native_culture: str
    native_text: str
    translations: Mapping[str, str] = field(default_factory=dict)

    def localized_text(self, culture: str) -> str | None:
        """Return the translation for ``culture``, or None if there is none."""
        return self.translations.get(culture)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LocalizationEntry:
        return cls(
            key=data["key"],
            namespace=data.get("namespace", ""),
            native_culture=data["native_culture"],
            native_text=data.get("native_text", ""),
            translations=dict(data.get("translations") or {}),
        )


class MetadataKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class MetadataValue:
    """A manifest metadata value tagged with its declared kind.

    WHY: Manifest info metadata is polymorphic. Coercion into a column
    value dispatches on the tag instead of on the Python runtime type,
    so "42" declared as a string stays a string.

    RULES:
    - STRING: value is str
    - NUMBER: value is int or float
    - BOOLEAN: value is bool
    - ARRAY: value is a tuple of MetadataValue
    - OBJECT: value is a mapping of str → MetadataValue
    """

    kind: MetadataKind
    value: Any

    @classmethod
    def from_json(cls, raw: Any) -> MetadataValue:
        """Tag a decoded JSON value. ``None`` becomes an empty string."""
        if isinstance(raw, MetadataValue):
            return raw
        if raw is None:
            return cls(MetadataKind.STRING, "")
        # bool before int: bool is an int subclass
        if isinstance(raw, bool):
            return cls(MetadataKind.BOOLEAN, raw)
        if isinstance(raw, (int, float)):
            return cls(MetadataKind.NUMBER, raw)
        if isinstance(raw, str):
            return cls(MetadataKind.STRING, raw)
        if isinstance(raw, Mapping):
            return cls(
                MetadataKind.OBJECT,
                MappingProxyType({str(k): cls.from_json(v) for k, v in raw.items()}),
            )
        if isinstance(raw, (list, tuple)):
            return cls(MetadataKind.ARRAY, tuple(cls.from_json(v) for v in raw))
        return cls(MetadataKind.STRING, str(raw))

    def to_plain(self) -> Any:
        """Return the untagged JSON-compatible value."""
        if self.kind is MetadataKind.ARRAY:
            return [item.to_plain() for item in self.value]
        if self.kind is MetadataKind.OBJECT:
            return {k: v.to_plain() for k, v in self.value.items()}
        return self.value

    def to_string(self) -> str:
        """String form of the value, defined for every kind."""
        if self.kind is MetadataKind.STRING:
            return self.value
        if self.kind is MetadataKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind is MetadataKind.NUMBER:
            if isinstance(self.value, float) and self.value.is_integer():
                return str(int(self.value))
            return str(self.value)
        return json.dumps(self.to_plain(), separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class ManifestContext:
    """Provenance of one entry as recorded in the localization manifest.

    RULES:
    - source_location uses one of two legacy encodings:
      "File.cpp - line 42" for code, or an asset/file path for string tables
    - info_metadata preserves insertion order (cells follow it)
    """

    source_location: str = ""
    info_metadata: Mapping[str, MetadataValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ManifestContext:
        raw_meta = data.get("info_metadata") or {}
        return cls(
            source_location=data.get("source_location", ""),
            info_metadata={k: MetadataValue.from_json(v) for k, v in raw_meta.items()},
        )


ContextLookup = Callable[[str, str], "ManifestContext | None"]


class ManifestIndex:
    """In-memory manifest lookup keyed by (namespace, key).

    Instances are callable, so they can be passed straight to
    convert_entries() as the context lookup.
    """

    def __init__(self, contexts: Mapping[tuple[str, str], ManifestContext] | None = None) -> None:
        self._contexts: dict[tuple[str, str], ManifestContext] = dict(contexts or {})

    def __call__(self, namespace: str, key: str) -> ManifestContext | None:
        return self._contexts.get((namespace, key))

    def __len__(self) -> int:
        return len(self._contexts)

    def add(self, namespace: str, key: str, context: ManifestContext) -> None:
        self._contexts[(namespace, key)] = context

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> ManifestIndex:
        """Build from ``{namespace: {key: {source_location, info_metadata}}}``."""
        index = cls()
        for namespace, entries in data.items():
            for key, raw in entries.items():
                index.add(namespace, key, ManifestContext.from_dict(raw))
        return index


# ---------------------------------------------------------------------------
# Table side
# ---------------------------------------------------------------------------


class FieldType(str, Enum):
    """Type tag of a row field."""

    ENUM = "enum"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT = "float"
    DOUBLE = "double"
    BOOL = "bool"
    STRING = "string"
    NAME = "name"
    TEXT = "text"
    OBJECT = "object"
    ARRAY = "array"
    SET = "set"
    MAP = "map"
    STRUCT = "struct"

    @classmethod
    def parse(cls, raw: str) -> FieldType:
        """Parse a type tag, accepting common aliases ("int", "byte", "bool")."""
        tag = raw.strip().lower()
        return cls(_FIELD_TYPE_ALIASES.get(tag, tag))

    @property
    def is_integer(self) -> bool:
        return self in INTEGER_WIDTHS

    @property
    def is_floating(self) -> bool:
        return self in (FieldType.FLOAT, FieldType.DOUBLE)

    @property
    def is_numeric(self) -> bool:
        return self.is_integer or self.is_floating

    @property
    def is_aggregate(self) -> bool:
        return self in AGGREGATE_TYPES


_FIELD_TYPE_ALIASES = {
    "byte": "uint8",
    "int": "int32",
    "integer": "int32",
    "boolean": "bool",
    "str": "string",
    "fstring": "string",
    "fname": "name",
    "ftext": "text",
    "tarray": "array",
    "tset": "set",
    "tmap": "map",
}

# (bit width, signed) for every integer tag
INTEGER_WIDTHS: dict[FieldType, tuple[int, bool]] = {
    FieldType.INT8: (8, True),
    FieldType.INT16: (16, True),
    FieldType.INT32: (32, True),
    FieldType.INT64: (64, True),
    FieldType.UINT8: (8, False),
    FieldType.UINT16: (16, False),
    FieldType.UINT32: (32, False),
    FieldType.UINT64: (64, False),
}

AGGREGATE_TYPES = frozenset({FieldType.ARRAY, FieldType.SET, FieldType.MAP, FieldType.STRUCT})


def _read_by_name(name: str) -> Callable[[Any], Any]:
    def read(row: Any) -> Any:
        if isinstance(row, Mapping):
            return row.get(name)
        return getattr(row, name, None)

    return read


@dataclass(frozen=True)
class FieldDescriptor:
    """One field of a row type.

    RULES:
    - name: field identifier; display_name overrides it as column id
    - array_dim: fixed array dimension; only 1 is exported
    - enum_labels: value → label for enumerations and enum-flagged numerics
    - accessor: reads the raw value from a row (default: by name)
    """

    name: str
    field_type: FieldType
    array_dim: int = 1
    display_name: str | None = None
    enum_labels: Mapping[int, str] | None = None
    accessor: Callable[[Any], Any] | None = field(default=None, compare=False, repr=False)

    @property
    def export_name(self) -> str:
        return self.display_name or self.name

    @property
    def is_enum_flagged(self) -> bool:
        """True for numeric fields that carry enumeration labels."""
        return self.field_type.is_numeric and self.enum_labels is not None

    def read(self, row: Any) -> Any:
        accessor = self.accessor or _read_by_name(self.name)
        return accessor(row)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldDescriptor:
        labels = data.get("enum_labels")
        if isinstance(labels, (list, tuple)):
            labels = {i: label for i, label in enumerate(labels)}
        elif isinstance(labels, Mapping):
            labels = {int(k): v for k, v in labels.items()}
        return cls(
            name=data["name"],
            field_type=FieldType.parse(data["type"]),
            array_dim=int(data.get("array_dim", 1)),
            display_name=data.get("display_name"),
            enum_labels=labels,
        )


@dataclass(frozen=True)
class RowSchema:
    """Declared row type of a table: a name and ordered field descriptors."""

    name: str
    fields: tuple[FieldDescriptor, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RowSchema:
        return cls(
            name=data.get("name", ""),
            fields=tuple(FieldDescriptor.from_dict(f) for f in data.get("fields", ())),
        )


class TableHandle(Protocol):
    """What the table converter needs from a table."""

    name: str

    @property
    def row_schema(self) -> RowSchema | None: ...

    def row_names(self) -> Sequence[str]:
        """Row names in the table's native key order."""
        ...

    def row(self, row_name: str) -> Any: ...


@dataclass
class InMemoryTable:
    """A table whose rows are held in an insertion-ordered dict."""

    name: str
    row_schema: RowSchema | None
    rows: dict[str, Any] = field(default_factory=dict)

    def row_names(self) -> list[str]:
        return list(self.rows)

    def row(self, row_name: str) -> Any:
        return self.rows[row_name]

    def __len__(self) -> int:
        return len(self.rows)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InMemoryTable:
        """Build from ``{"name", "row_struct": {...} | null, "rows": {name: {...}}}``.

        ``rows`` may also be a list of objects carrying a "name" key.
        """
        raw_schema = data.get("row_struct")
        schema = RowSchema.from_dict(raw_schema) if raw_schema is not None else None
        raw_rows = data.get("rows") or {}
        if isinstance(raw_rows, Mapping):
            rows = dict(raw_rows)
        else:
            rows = _rows_from_list(raw_rows)
        return cls(name=data.get("name", ""), row_schema=schema, rows=rows)


def _rows_from_list(items: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    rows: dict[str, Any] = {}
    for item in items:
        values = dict(item)
        row_name = str(values.pop("name"))
        rows[row_name] = values
    return rows

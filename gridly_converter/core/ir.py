"""Record and cell dataclasses for the Gridly import document.

WHY: Both converters (localization entries and table rows) produce the
same output shape: an ordered list of records, each an id plus an
ordered list of column/value cells. A shared, typed intermediate form
lets the serializer stay ignorant of where records came from.

HOW: Two frozen dataclasses:
  Cell   — one columnId/value pair
  Record — id, optional path, and a tuple of cells
Document is simply an ordered list of Records.

RULES:
- Cell values are str, int, float or bool; numbers and booleans stay
  native so the serializer can emit them as JSON numbers/booleans
- Cell order inside a record is insertion order and must be
  deterministic (tests compare it)
- path is None when the record has no path; it is then omitted from JSON
- Records are immutable once built
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Union

CellValue = Union[str, int, float, bool]


@dataclass(frozen=True)
class Cell:
    """A single column/value pair within a record."""

    column_id: str
    value: CellValue

    def to_dict(self) -> dict[str, Any]:
        return {"columnId": self.column_id, "value": self.value}


@dataclass(frozen=True)
class Record:
    """One exported localization entry or table row.

    RULES:
    - id: raw key, "namespace,key", or the table row name
    - path: Gridly path (folder) of the record, or None
    - cells: ordered cells, possibly empty
    """

    id: str
    cells: tuple[Cell, ...] = ()
    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object for this record (key order: id, path, cells)."""
        data: dict[str, Any] = {"id": self.id}
        if self.path is not None:
            data["path"] = self.path
        data["cells"] = [cell.to_dict() for cell in self.cells]
        return data

    def cell(self, column_id: str) -> Cell | None:
        """Return the first cell for ``column_id``, or None."""
        for cell in self.cells:
            if cell.column_id == column_id:
                return cell
        return None


Document = List[Record]

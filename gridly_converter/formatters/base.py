"""Abstract base formatter and output container.

WHY: The CLI (and any other driver) saves converter output without
caring how it was encoded. This base class gives every output encoding
the same interface: take a Document, return files to write.

HOW: BaseFormatter is an ABC with two requirements: a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list; the records formatter returns one item
- ``suffix`` starts with a hyphen, e.g. ``"-gridly.json"``
- The caller is responsible for prepending the source filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from gridly_converter.core.ir import Document


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-gridly.json"`` → ``"strings-gridly.json"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str | bytes
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for document formatters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Gridly records JSON'."""

    @abstractmethod
    def format(self, document: Document) -> list[FormatterOutput]:
        """Encode a converted document into one or more output files."""

"""Culture mapping between host locale identifiers and Gridly language codes.

WHY: The host application names cultures with BCP-47 style tags
("en", "pt-BR", "zh-Hans"), while Gridly columns use compact codes
("enUS", "ptBR", "zhCN"). Both converters need the same translation
and the same ordered list of target cultures.

HOW: CultureMapper wraps a fixed lookup table (built once, never
mutated) plus the configured target cultures. from_config() builds it
from DEFAULT_CULTURE_MAP and the GRIDLY_CULTURE_MAP /
GRIDLY_TARGET_CULTURES environment variables.

RULES:
- Lookups are exact first, then case-insensitive
- A missing mapping is a skip signal: try_to_backend_culture returns None
- target_cultures() order is fixed at construction and determines the
  order of target-language cells
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from gridly_converter.config import load_culture_map, load_target_cultures
from gridly_converter.errors import CultureNotMappedError


class CultureMapper:
    """Pure lookup between host cultures and Gridly language codes."""

    def __init__(
        self,
        culture_map: Mapping[str, str],
        target_cultures: Iterable[str] = (),
    ) -> None:
        self._to_backend = MappingProxyType(dict(culture_map))
        self._to_backend_folded = {k.lower(): v for k, v in culture_map.items()}

        # Reverse table: first host culture listed for a code wins, so
        # "enUS" maps back to "en" rather than "en-US".
        reverse: dict[str, str] = {}
        for host, backend in culture_map.items():
            reverse.setdefault(backend, host)
        self._to_host = MappingProxyType(reverse)
        self._to_host_folded = {k.lower(): v for k, v in reverse.items()}

        ordered: list[str] = []
        for culture in target_cultures:
            if culture not in ordered:
                ordered.append(culture)
        self._target_cultures = tuple(ordered)

    @classmethod
    def from_config(cls) -> CultureMapper:
        """Build a mapper from the default table and environment overrides."""
        return cls(load_culture_map(), load_target_cultures())

    def with_target_cultures(self, target_cultures: Iterable[str]) -> CultureMapper:
        """Return a mapper with the same culture table and new target cultures."""
        return CultureMapper(self._to_backend, target_cultures)

    def to_backend_culture(self, host_culture: str) -> str:
        """Map a host culture to its Gridly code.

        Raises:
            CultureNotMappedError: If the culture is not in the table.
        """
        backend = self.try_to_backend_culture(host_culture)
        if backend is None:
            raise CultureNotMappedError(host_culture)
        return backend

    def try_to_backend_culture(self, host_culture: str) -> str | None:
        if host_culture in self._to_backend:
            return self._to_backend[host_culture]
        return self._to_backend_folded.get(host_culture.lower())

    def to_host_culture(self, backend_culture: str) -> str:
        """Map a Gridly code back to a host culture.

        Raises:
            CultureNotMappedError: If no host culture maps to the code.
        """
        if backend_culture in self._to_host:
            return self._to_host[backend_culture]
        host = self._to_host_folded.get(backend_culture.lower())
        if host is None:
            raise CultureNotMappedError(backend_culture)
        return host

    def target_cultures(self) -> tuple[str, ...]:
        return self._target_cultures

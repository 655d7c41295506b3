# genocache/ports/records.py
from __future__ import annotations

from typing import Protocol, TypeVar
from ..domain.models import ContigInterval

T = TypeVar("T")


class RecordStrategy(Protocol[T]):
    """How a cache identifies, filters and orders one record type."""

    def key(self, record: T) -> str:
        """Lookup key; one record per key per resolution tier."""

    def matches(self, range: ContigInterval, record: T) -> bool:
        """True if ``record`` belongs in a query for ``range``."""

    def position(self, record: T) -> int:
        """Sort position used by ``get_in_range``."""

# genocache/ports/coverage.py
from __future__ import annotations

from typing import Protocol, TypeVar
from ..domain.models import ContigInterval

T = TypeVar("T")


class Coverage(Protocol[T]):
    def covers_range(self, range: ContigInterval, resolution: int | None = None) -> bool:
        """True if every position of ``range`` was fetched at ``resolution``."""

    def complement_interval(self, range: ContigInterval, resolution: int | None = None) -> list[ContigInterval]:
        """Disjoint sub-ranges of ``range`` still missing at ``resolution``."""

    def cover_range(self, range: ContigInterval, resolution: int | None = None) -> None:
        """Mark ``range`` fetched at ``resolution``; call before the fetch resolves."""

    def put(self, record: T, resolution: int | None = None) -> None:
        """Store ``record``; first write per key and tier wins."""

    def get(self, range: ContigInterval, resolution: int | None = None) -> list[T]:
        """Stored records matching ``range`` in one tier, unordered."""

    def clear(self) -> None:
        """Drop both the covered set and the records."""

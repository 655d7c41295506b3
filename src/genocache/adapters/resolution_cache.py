# genocache/adapters/resolution_cache.py
from __future__ import annotations

import logging
from typing import TypeVar

from ..domain.models import ContigInterval, Interval, ResolutionCacheKey
from ..ports.coverage import Coverage
from ..ports.records import RecordStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (exclusive upper bound on span, resolution); chosen for a ~1000px track
_TIERS: tuple[tuple[int, int], ...] = ((10_000, 1), (100_000, 10), (1_000_000, 100))
COARSEST_RESOLUTION = 1000
DEFAULT_STORAGE_RESOLUTION = 1


def resolution_for_span(span: int) -> int:
    for bound, res in _TIERS:
        if span < bound:
            return res
    return COARSEST_RESOLUTION


class ResolutionCache(Coverage[T]):
    """
    In-memory record store plus covered-set bookkeeping, one per data source.

    Records live in per-resolution dicts keyed by ``strategy.key``. The covered
    set is a list of :class:`ResolutionCacheKey`, re-coalesced on every
    ``cover_range``. Nothing is ever evicted.

    Not thread-safe: mutate only from the owning event loop.
    """
    def __init__(self, strategy: RecordStrategy[T]) -> None:
        self.strategy = strategy
        self._covered: list[ResolutionCacheKey] = []
        self._cache: dict[int, dict[str, T]] = {}

    @staticmethod
    def get_resolution(range: Interval | ContigInterval) -> int:
        """Bin size for a view of ``range``: 1 below 10kbp, then 10, 100, 1000 per decade."""
        iv = range.interval if isinstance(range, ContigInterval) else range
        # span, not length(): a 1..10000 window is still unbinned
        return resolution_for_span(iv.length() - 1)

    def _resolve(self, range: ContigInterval, resolution: int | None) -> int:
        return resolution if resolution else self.get_resolution(range)

    def _covered_at(self, resolution: int) -> list[ContigInterval]:
        return [k.contig_interval for k in self._covered if k.resolution == resolution]

    def covered_ranges(self, resolution: int | None = None) -> list[ResolutionCacheKey]:
        if resolution is None: return list(self._covered)
        return [k for k in self._covered if k.resolution == resolution]

    def complement_interval(self, range: ContigInterval, resolution: int | None = None) -> list[ContigInterval]:
        return range.complement_intervals(self._covered_at(self._resolve(range, resolution)))

    def covers_range(self, range: ContigInterval, resolution: int | None = None) -> bool:
        return range.is_covered_by(self._covered_at(self._resolve(range, resolution)))

    def cover_range(self, range: ContigInterval, resolution: int | None = None) -> None:
        res = self._resolve(range, resolution)
        self._covered.append(ResolutionCacheKey(res, range))
        self._covered = ResolutionCacheKey.coalesce(self._covered)
        logger.debug("covered %s at resolution %d (%d ranges)", range, res, len(self._covered))

    def put(self, record: T, resolution: int | None = None) -> None:
        tier = self._cache.setdefault(resolution or DEFAULT_STORAGE_RESOLUTION, {})
        # first write wins; a later copy of the same key is dropped
        tier.setdefault(self.strategy.key(record), record)

    def get(self, range: ContigInterval | None, resolution: int | None = None) -> list[T]:
        if range is None: return []
        tier = self._cache.get(resolution or DEFAULT_STORAGE_RESOLUTION, {})
        return [r for r in tier.values() if self.strategy.matches(range, r)]

    def contains_key(self, key: str, resolution: int | None = None) -> bool:
        return key in self._cache.get(resolution or DEFAULT_STORAGE_RESOLUTION, {})

    def clear(self) -> None:
        self._covered = []
        self._cache = {}

    def __len__(self) -> int:
        return sum(len(t) for t in self._cache.values())

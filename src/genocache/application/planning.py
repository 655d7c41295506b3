from __future__ import annotations
from dataclasses import dataclass
from typing import Callable

from ..adapters.resolution_cache import ResolutionCache
from ..domain.models import ContigInterval


@dataclass(slots=True, frozen=True)
class FetchPlan:
    interval: ContigInterval          # expanded range, covered before dispatch
    resolution: int
    gaps: tuple[ContigInterval, ...]  # sub-ranges still missing at `resolution`


def expand_range(range: ContigInterval, base_pairs_per_fetch: int, *, minimum: int = 1) -> ContigInterval:
    """Snap start down and stop up to multiples of ``base_pairs_per_fetch`` so panning reuses fetches."""
    round_down = lambda x: x - x % base_pairs_per_fetch
    return ContigInterval.of(
        range.contig,
        max(minimum, round_down(range.start)),
        round_down(range.stop + base_pairs_per_fetch - 1),
    )


def plan_fetch(
    cache: ResolutionCache,
    range: ContigInterval,
    *,
    expand: Callable[[ContigInterval], ContigInterval],
    binned: bool,
) -> FetchPlan | None:
    """None when ``range`` is already covered; otherwise the expanded interval and its gaps."""
    # resolution comes from the requested view, not the expanded one
    resolution = ResolutionCache.get_resolution(range) if binned else 1
    if cache.covers_range(range, resolution):
        return None
    expanded = expand(range)
    # the covered range must enclose the view, or the view never reads as covered
    interval = ContigInterval.of(range.contig, min(expanded.start, range.start), max(expanded.stop, range.stop))
    return FetchPlan(interval, resolution, tuple(cache.complement_interval(interval, resolution)))


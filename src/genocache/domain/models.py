from __future__ import annotations
import re
from dataclasses import dataclass
from itertools import groupby
from typing import Any, Iterable, Mapping

from .intervals import bounding, complement, merge_intervals


def _strip_chr(contig: str) -> str:
    return contig[3:] if contig[:3].lower() == "chr" else contig


@dataclass(slots=True, frozen=True, order=True)
class Interval:
    """Closed range [start, stop]."""
    start: int
    stop: int

    def __post_init__(self) -> None:
        if self.start > self.stop:
            raise ValueError(f"Interval start ({self.start}) must be <= stop ({self.stop})")

    def length(self) -> int: return self.stop - self.start + 1

    def intersects(self, other: Interval) -> bool:
        return self.start <= other.stop and other.start <= self.stop

    def intersect(self, other: Interval) -> Interval | None:
        if not self.intersects(other): return None
        return Interval(max(self.start, other.start), min(self.stop, other.stop))

    def contains(self, value: int) -> bool: return self.start <= value <= self.stop

    def contains_interval(self, other: Interval) -> bool:
        return self.start <= other.start and other.stop <= self.stop

    def is_adjacent_to(self, other: Interval) -> bool:
        return self.stop + 1 == other.start or other.stop + 1 == self.start

    def complement_intervals(self, others: Iterable[Interval]) -> list[Interval]:
        return [Interval(s, e) for s, e in complement((self.start, self.stop), ((o.start, o.stop) for o in others))]

    def is_covered_by(self, others: Iterable[Interval]) -> bool:
        return not self.complement_intervals(others)

    @staticmethod
    def coalesce(intervals: Iterable[Interval]) -> list[Interval]:
        return [Interval(s, e) for s, e in merge_intervals((iv.start, iv.stop) for iv in intervals)]

    @staticmethod
    def bounding_interval(intervals: Iterable[Interval]) -> Interval:
        s, e = bounding((iv.start, iv.stop) for iv in intervals)
        return Interval(s, e)

    def __str__(self) -> str: return f"[{self.start}, {self.stop}]"


_REGION_RE = re.compile(r"^\s*([^:\s]+):([\d,_]+)-([\d,_]+)\s*$")


@dataclass(slots=True, frozen=True, order=True)
class ContigInterval:
    """An :class:`Interval` on a named contig. Orders by contig, then start."""
    contig: str
    interval: Interval

    @classmethod
    def of(cls, contig: str, start: int, stop: int) -> ContigInterval:
        return cls(contig, Interval(start, stop))

    @classmethod
    def from_genome_range(cls, r: GenomeRange | ContigInterval | Mapping[str, Any]) -> ContigInterval:
        if isinstance(r, ContigInterval): return r
        if isinstance(r, GenomeRange): return cls.of(r.contig, r.start, r.stop)
        return cls.of(str(r["contig"]), int(r["start"]), int(r["stop"]))

    @classmethod
    def parse(cls, region: str) -> ContigInterval:
        """Parse ``chrM:1000-1200`` (thousands separators allowed)."""
        m = _REGION_RE.match(region)
        if not m:
            raise ValueError(f"Invalid region {region!r}; expected contig:start-stop")
        contig, s, e = m.groups()
        return cls.of(contig, int(s.replace(",", "").replace("_", "")), int(e.replace(",", "").replace("_", "")))

    @property
    def start(self) -> int: return self.interval.start

    @property
    def stop(self) -> int: return self.interval.stop

    def length(self) -> int: return self.interval.length()

    def intersects(self, other: ContigInterval) -> bool:
        return self.contig == other.contig and self.interval.intersects(other.interval)

    def intersect(self, other: ContigInterval) -> ContigInterval | None:
        if self.contig != other.contig: return None
        iv = self.interval.intersect(other.interval)
        return None if iv is None else ContigInterval(self.contig, iv)

    def contains_interval(self, other: ContigInterval) -> bool:
        return self.contig == other.contig and self.interval.contains_interval(other.interval)

    def is_adjacent_to(self, other: ContigInterval) -> bool:
        return self.contig == other.contig and self.interval.is_adjacent_to(other.interval)

    def contains_locus(self, contig: str, position: int) -> bool:
        return self.contig == contig and self.interval.contains(position)

    def chr_contains_locus(self, contig: str, position: int) -> bool:
        """Like :meth:`contains_locus`, but ``chr17`` and ``17`` name the same contig."""
        return _strip_chr(self.contig) == _strip_chr(contig) and self.interval.contains(position)

    def chr_on_contig(self, contig: str) -> bool:
        return _strip_chr(self.contig) == _strip_chr(contig)

    def is_after_interval(self, other: ContigInterval) -> bool:
        return self.contig > other.contig or (self.contig == other.contig and self.start > other.stop)

    def complement_intervals(self, others: Iterable[ContigInterval]) -> list[ContigInterval]:
        """Disjoint pieces of self not covered by ``others``; other contigs are ignored."""
        same = [o.interval for o in others if o.contig == self.contig]
        return [ContigInterval(self.contig, iv) for iv in self.interval.complement_intervals(same)]

    def is_covered_by(self, others: Iterable[ContigInterval]) -> bool:
        return not self.complement_intervals(others)

    def round(self, multiple: int, zero_based: bool) -> ContigInterval:
        """Grow outward to multiples of ``multiple``; start never drops below 0 (or 1)."""
        minimum = 0 if zero_based else 1
        return ContigInterval.of(
            self.contig,
            max(minimum, self.start - self.start % multiple),
            self.stop - self.stop % multiple + multiple - 1,
        )

    @staticmethod
    def coalesce(intervals: Iterable[ContigInterval]) -> list[ContigInterval]:
        out: list[ContigInterval] = []
        for contig, group in groupby(sorted(intervals), key=lambda ci: ci.contig):
            out.extend(ContigInterval(contig, iv) for iv in Interval.coalesce(ci.interval for ci in group))
        return out

    def __str__(self) -> str: return f"{self.contig}:{self.start}-{self.stop}"


@dataclass(slots=True, frozen=True)
class GenomeRange:
    """What the viewer hands to ``range_changed``."""
    contig: str
    start: int
    stop: int


@dataclass(slots=True, frozen=True, order=True)
class ResolutionCacheKey:
    """A contig range known to be fully fetched at ``resolution``."""
    resolution: int
    contig_interval: ContigInterval

    @staticmethod
    def coalesce(keys: Iterable[ResolutionCacheKey]) -> list[ResolutionCacheKey]:
        out: list[ResolutionCacheKey] = []
        for res, group in groupby(sorted(keys), key=lambda k: k.resolution):
            out.extend(ResolutionCacheKey(res, ci) for ci in ContigInterval.coalesce(k.contig_interval for k in group))
        return out


@dataclass(slots=True, frozen=True)
class FetchOptions:
    """Typed replacement for the ``binning=<n>`` query modifier."""
    binning: int | None = None
    page_token: str | None = None

    def params(self) -> dict[str, str | int]:
        p: dict[str, str | int] = {}
        if self.binning is not None: p["binning"] = self.binning
        if self.page_token: p["pageToken"] = self.page_token
        return p

    @property
    def modifier(self) -> str:
        return "&".join(f"{k}={v}" for k, v in self.params().items())


@dataclass(slots=True)
class Chunk:
    contig: str
    start: int
    stop: int
    binning: int | None
    response: Any

    def covers(self, contig: str, start: int, stop: int, binning: int | None) -> bool:
        return (self.contig == contig and self.binning == binning
                and self.start <= start and self.stop >= stop)

    def view(self, start: int, stop: int) -> Any:
        """Raw byte responses are sliced to the request; decoded JSON is returned whole."""
        if isinstance(self.response, (bytes, bytearray, memoryview)):
            return self.response[start - self.start: stop - self.start + 1]
        return self.response


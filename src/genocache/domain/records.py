from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from .models import ContigInterval
from .value_types import Strand


# ──────────────────────────────
# Record types
# ──────────────────────────────

@dataclass(slots=True, frozen=True)
class Feature:
    id: str
    feature_type: str
    contig: str
    start: int
    stop: int
    score: float = 0.0
    strand: Strand = "."


@dataclass(slots=True, frozen=True)
class Variant:
    contig: str
    position: int
    ref: str = ""
    alt: tuple[str, ...] = ()
    id: str | None = None


@dataclass(slots=True, frozen=True)
class VariantContext:
    variant: Variant
    sample_ids: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class Genotype:
    variant: Variant
    sample_ids: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class PositionCount:
    contig: str
    position: int
    count: int


@dataclass(slots=True, frozen=True)
class Alignment:
    name: str
    read_number: int
    contig: str
    start: int                       # 1-based, inclusive
    stop: int                        # start + reference length - 1
    reverse_strand: bool = False
    sequence: str = ""
    cigar: tuple[tuple[str, int], ...] = ()
    mapping_quality: int | None = None

    @property
    def key(self) -> str: return f"{self.name}:{self.read_number}"

    @property
    def strand(self) -> Strand: return "-" if self.reverse_strand else "+"

    def interval(self) -> ContigInterval: return ContigInterval.of(self.contig, self.start, self.stop)

    def intersects(self, range: ContigInterval) -> bool: return range.intersects(self.interval())


@dataclass(slots=True, frozen=True)
class Band:
    name: str
    start: int
    stop: int
    stain: str = ""


@dataclass(slots=True, frozen=True)
class Chromosome:
    name: str
    length: int = 0
    bands: tuple[Band, ...] = field(default_factory=tuple)


# ──────────────────────────────
# Strategies (key / filter / sort)
# ──────────────────────────────

class FeatureStrategy:
    def key(self, f: Feature) -> str: return f"{f.contig}:{f.start}"
    def matches(self, range: ContigInterval, f: Feature) -> bool:
        return range.intersects(ContigInterval.of(f.contig, f.start, f.stop))
    def position(self, f: Feature) -> int: return f.start


class VariantStrategy:
    def key(self, vc: VariantContext) -> str: return f"{vc.variant.contig}:{vc.variant.position}"
    def matches(self, range: ContigInterval, vc: VariantContext) -> bool:
        return range.contains_locus(vc.variant.contig, vc.variant.position)
    def position(self, vc: VariantContext) -> int: return vc.variant.position


class GenotypeStrategy:
    def key(self, g: Genotype) -> str: return f"{g.variant.contig}:{g.variant.position}"
    def matches(self, range: ContigInterval, g: Genotype) -> bool:
        return range.chr_contains_locus(g.variant.contig, g.variant.position)
    def position(self, g: Genotype) -> int: return g.variant.position


class CoverageStrategy:
    def key(self, p: PositionCount) -> str: return f"{p.contig}:{p.position}"
    def matches(self, range: ContigInterval, p: PositionCount) -> bool:
        return range.chr_contains_locus(p.contig, p.position)
    def position(self, p: PositionCount) -> int: return p.position


class AlignmentStrategy:
    def key(self, a: Alignment) -> str: return a.key
    def matches(self, range: ContigInterval, a: Alignment) -> bool: return a.intersects(range)
    def position(self, a: Alignment) -> int: return a.start


class ChromosomeStrategy:
    def key(self, c: Chromosome) -> str: return c.name
    def matches(self, range: ContigInterval, c: Chromosome) -> bool: return c.name == range.contig
    def position(self, c: Chromosome) -> int: return 0


def describe(record: Any) -> str:
    """One-line summary used by the CLI table."""
    if isinstance(record, Feature):
        return f"{record.feature_type or 'feature'} {record.id} score={record.score:g}"
    if isinstance(record, (VariantContext, Genotype)):
        v = record.variant
        samples = f" samples={','.join(record.sample_ids)}" if record.sample_ids else ""
        return f"{v.ref}>{','.join(v.alt) or '.'}{samples}"
    if isinstance(record, Variant):
        return f"{record.ref}>{','.join(record.alt) or '.'}"
    if isinstance(record, PositionCount):
        return f"count={record.count}"
    if isinstance(record, Alignment):
        return f"{record.key} {record.strand} {len(record.sequence)}bp"
    if isinstance(record, Chromosome):
        return f"{len(record.bands)} bands"
    return repr(record)

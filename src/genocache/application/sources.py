from __future__ import annotations

import logging
from typing import Any

import httpx

from ..adapters.remote_httpx import RemoteRequest
from ..domain import decoding
from ..domain.models import ContigInterval
from ..domain.records import (
    Alignment, AlignmentStrategy, Chromosome, ChromosomeStrategy, CoverageStrategy, Feature,
    FeatureStrategy, Genotype, GenotypeStrategy, PositionCount, Variant, VariantContext, VariantStrategy,
)
from ..domain.value_types import SourceKind
from ..ports.remote import RangeRequester
from .use_cases import RangeDataSource, RangeLike

logger = logging.getLogger(__name__)

# Requests are expanded to begin & end at multiples of these, so panning
# typically won't need another network request.
FEATURE_BASE_PAIRS_PER_FETCH = 10_000
VARIANT_BASE_PAIRS_PER_FETCH = 10_000
GENOTYPE_BASE_PAIRS_PER_FETCH = 1_000
COVERAGE_BASE_PAIRS_PER_FETCH = 1_000
ALIGNMENT_BASE_PAIRS_PER_FETCH = 1_000

MAX_ALIGNMENT_BASE_PAIRS_TO_FETCH = 40_000


class FeatureDataSource(RangeDataSource[Feature]):
    base_pairs_per_fetch = FEATURE_BASE_PAIRS_PER_FETCH
    min_start = 0
    binned = True

    def __init__(self, remote: RangeRequester, **kw: Any) -> None:
        super().__init__(remote, FeatureStrategy(), **kw)

    def decode(self, response: Any, range: ContigInterval) -> list[Feature]:
        return decoding.decode_features(response)

    def get_features_in_range(self, range: RangeLike | None, resolution: int | None = None) -> list[Feature]:
        return self.get_in_range(range, resolution)


class VariantDataSource(RangeDataSource[VariantContext]):
    """Variants, optionally with per-sample calls (``samples``) for genotype tracks."""
    base_pairs_per_fetch = VARIANT_BASE_PAIRS_PER_FETCH
    binned = True

    def __init__(self, remote: RangeRequester, samples: list[str] | None = None, **kw: Any) -> None:
        super().__init__(remote, VariantStrategy(), **kw)
        self.samples = list(samples) if samples else None

    def decode(self, response: Any, range: ContigInterval) -> list[VariantContext]:
        return decoding.decode_variant_contexts(response)

    def get_variants_in_range(self, range: RangeLike | None, resolution: int | None = None) -> list[Variant]:
        return [vc.variant for vc in self.get_in_range(range, resolution)]

    def get_genotypes_in_range(self, range: RangeLike | None, resolution: int | None = None) -> list[VariantContext]:
        if not self.samples:
            return []
        return self.get_in_range(range, resolution)

    def get_samples(self) -> list[str]:
        if not self.samples:
            raise ValueError("No samples for genotypes")
        return list(self.samples)


class GenotypeDataSource(RangeDataSource[Genotype]):
    base_pairs_per_fetch = GENOTYPE_BASE_PAIRS_PER_FETCH

    def __init__(self, remote: RangeRequester, **kw: Any) -> None:
        super().__init__(remote, GenotypeStrategy(), **kw)

    def decode(self, response: Any, range: ContigInterval) -> list[Genotype]:
        return decoding.decode_genotypes(response)

    def get_features_in_range(self, range: RangeLike | None, resolution: int | None = None) -> list[Genotype]:
        return self.get_in_range(range, resolution)

    get_genotypes_in_range = get_features_in_range


class CoverageDataSource(RangeDataSource[PositionCount]):
    base_pairs_per_fetch = COVERAGE_BASE_PAIRS_PER_FETCH
    binned = True

    def __init__(self, remote: RangeRequester, **kw: Any) -> None:
        super().__init__(remote, CoverageStrategy(), **kw)

    def decode(self, response: Any, range: ContigInterval) -> list[PositionCount]:
        # positions come back without a contig; stamp the requested one
        return decoding.decode_coverage(response, range.contig)

    def get_coverage_in_range(self, range: RangeLike | None, resolution: int | None = None) -> list[PositionCount]:
        return self.get_in_range(range, resolution)

    def max_coverage(self, range: RangeLike | None, resolution: int | None = None) -> int:
        return max((p.count for p in self.get_in_range(range, resolution)), default=0)


class AlignmentDataSource(RangeDataSource[Alignment]):
    """GA4GH reads, paged by ``nextPageToken``. Views wider than 40kbp are not fetched."""
    base_pairs_per_fetch = ALIGNMENT_BASE_PAIRS_PER_FETCH
    paged = True
    max_fetch_span = MAX_ALIGNMENT_BASE_PAIRS_TO_FETCH
    zero_based = False

    def __init__(self, remote: RangeRequester, *, forced_reference_id: str | None = None, **kw: Any) -> None:
        super().__init__(remote, AlignmentStrategy(), **kw)
        self.forced_reference_id = forced_reference_id

    def expand(self, range: ContigInterval) -> ContigInterval:
        return range.round(self.base_pairs_per_fetch, self.zero_based)

    def request_contig(self, range: ContigInterval) -> str:
        return self.forced_reference_id or range.contig

    def decode(self, response: Any, range: ContigInterval) -> list[Alignment]:
        # don't bother building reads we already hold
        return decoding.decode_alignments(response, skip=self.cache.contains_key)

    def get_alignments_in_range(self, range: RangeLike | None) -> list[Alignment]:
        return self.get_in_range(range)


class KaryogramSource(RangeDataSource[Chromosome]):
    """Chromosome ideograms. One record per contig; paged like the alignment source."""
    paged = True

    def __init__(self, remote: RangeRequester, **kw: Any) -> None:
        super().__init__(remote, ChromosomeStrategy(), **kw)

    def decode(self, response: Any, range: ContigInterval) -> list[Chromosome]:
        return decoding.decode_chromosomes(response)

    def get_chromosomes_in_range(self, range: RangeLike | None) -> list[Chromosome]:
        return self.get_in_range(range)

    get_features_in_range = get_chromosomes_in_range


# ──────────────────────────────
# Factories
# ──────────────────────────────

SOURCES: dict[str, type[RangeDataSource[Any]]] = {
    "features": FeatureDataSource,
    "variants": VariantDataSource,
    "genotypes": GenotypeDataSource,
    "coverage": CoverageDataSource,
    "alignments": AlignmentDataSource,
    "karyogram": KaryogramSource,
}


def create(
    kind: SourceKind,
    url: str | None,
    *,
    read_group_id: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    remote_kw: dict[str, Any] | None = None,
    **kw: Any,
) -> RangeDataSource[Any]:
    """Build a source of ``kind`` backed by its own :class:`RemoteRequest` for ``url``."""
    if not url:
        raise ValueError(f"Missing URL for {kind} source")
    if kind not in SOURCES:
        raise ValueError(f"Unknown source kind {kind!r}; expected one of {sorted(SOURCES)}")
    base = f"{url.rstrip('/')}/{read_group_id}" if read_group_id else url
    remote = RemoteRequest(base, transport=transport, **(remote_kw or {}))
    logger.debug("created %s source for %s", kind, base)
    return SOURCES[kind](remote, **kw)

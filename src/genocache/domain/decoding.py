from __future__ import annotations

import json
import logging
from typing import Any, Callable

from .records import (
    Alignment, Band, Chromosome, Feature, Genotype, PositionCount, Variant, VariantContext,
)

logger = logging.getLogger(__name__)

# GA4GH cigar operations that advance along the reference
_REF_CONSUMING = frozenset({"ALIGNMENT_MATCH", "DELETE", "SKIP", "SEQUENCE_MATCH", "SEQUENCE_MISMATCH"})


# ---------- helpers ----------------------------------------------------------

def _get(d: dict[str, Any], *names: str, default: Any = None) -> Any:
    """First present key among ``names`` (servers mix camelCase and snake_case)."""
    for n in names:
        if n in d and d[n] is not None:
            return d[n]
    return default

def _maybe_json(v: Any) -> Any:
    return json.loads(v) if isinstance(v, (str, bytes, bytearray)) else v

def records_of(response: Any, *wrapper_keys: str) -> list[Any]:
    """Records out of a bare array or an object wrapping one; None and '' mean no records."""
    if response is None or response == "" or response == b"":
        return []
    response = _maybe_json(response)
    if isinstance(response, dict):
        for k in wrapper_keys:
            if k in response:
                return list(response[k] or [])
        return []
    if isinstance(response, list):
        return response
    raise ValueError(f"Unexpected response shape: {type(response).__name__}")


# ---------- record decoders --------------------------------------------------

def decode_feature(d: dict[str, Any]) -> Feature:
    return Feature(
        id=str(_get(d, "id", "featureId", default="")),
        feature_type=str(_get(d, "featureType", "feature_type", "type", default="")),
        contig=str(_get(d, "contig", "referenceName", "contigName")),
        start=int(_get(d, "start")),
        stop=int(_get(d, "stop", "end")),
        score=float(_get(d, "score", "value", default=0.0)),
        strand=_get(d, "strand", default="."),
    )

def decode_variant(d: dict[str, Any]) -> Variant:
    alt = _get(d, "alt", "alternate", "alternateBases", default=())
    return Variant(
        contig=str(_get(d, "contig", "referenceName", "contigName")),
        position=int(_get(d, "position", "start")),
        ref=str(_get(d, "ref", "reference", "referenceBases", default="")),
        alt=(alt,) if isinstance(alt, str) else tuple(alt),
        id=_get(d, "id", "variantId"),
    )

def decode_variant_context(v: Any) -> VariantContext:
    d = _maybe_json(v)
    if "variant" in d:
        return VariantContext(decode_variant(d["variant"]), tuple(_get(d, "sampleIds", "sample_ids", default=())))
    return VariantContext(decode_variant(d))

def decode_genotype(v: Any) -> Genotype:
    d = _maybe_json(v)
    samples = _get(d, "sampleIds", "sample_ids", default=())
    return Genotype(decode_variant(d["variant"]), (samples,) if isinstance(samples, str) else tuple(samples))

def decode_position_count(d: dict[str, Any], contig: str) -> PositionCount:
    return PositionCount(contig=contig, position=int(_get(d, "position", "start")), count=int(_get(d, "count", "value")))

def decode_alignment(d: dict[str, Any]) -> Alignment:
    """GA4GH ReadAlignment → Alignment. Raises KeyError/TypeError on unmapped or partial reads."""
    aln = d["alignment"]
    pos = aln["position"]
    cigar = tuple((str(c["operation"]), int(c["operationLength"])) for c in aln.get("cigar") or ())
    ref_len = sum(n for op, n in cigar if op in _REF_CONSUMING) or len(d.get("alignedSequence") or "") or 1
    start = int(pos["position"]) + 1
    return Alignment(
        name=str(d["fragmentName"]),
        read_number=int(d.get("readNumber") or 0),
        contig=str(pos["referenceName"]),
        start=start,
        stop=start + ref_len - 1,
        reverse_strand=bool(pos.get("reverseStrand", False)),
        sequence=str(d.get("alignedSequence") or ""),
        cigar=cigar,
        mapping_quality=aln.get("mappingQuality"),
    )

def alignment_key(d: dict[str, Any]) -> str:
    """Key straight from the raw response, so duplicates can be skipped before decoding."""
    return f"{d.get('fragmentName')}:{d.get('readNumber') or 0}"

def decode_chromosome(d: dict[str, Any]) -> Chromosome:
    bands = tuple(
        Band(name=str(b.get("name", "")), start=int(_get(b, "start")), stop=int(_get(b, "stop", "end")),
             stain=str(_get(b, "stain", "type", "gieStain", default="")))
        for b in d.get("bands") or ()
    )
    return Chromosome(name=str(_get(d, "name", "referenceName")), length=int(_get(d, "length", default=0)), bands=bands)


# ---------- response decoders ------------------------------------------------

def decode_features(response: Any) -> list[Feature]:
    return [decode_feature(_maybe_json(d)) for d in records_of(response, "features")]

def decode_variant_contexts(response: Any) -> list[VariantContext]:
    return [decode_variant_context(v) for v in records_of(response, "variants")]

def decode_genotypes(response: Any) -> list[Genotype]:
    return [decode_genotype(v) for v in records_of(response, "genotypes")]

def decode_coverage(response: Any, contig: str) -> list[PositionCount]:
    return [decode_position_count(_maybe_json(d), contig) for d in records_of(response, "coverage", "positions")]

def decode_alignments(response: Any, *, skip: Callable[[str], bool] | None = None) -> list[Alignment]:
    out: list[Alignment] = []
    for d in records_of(response, "alignments"):
        if skip is not None and skip(alignment_key(d)):
            continue
        try:
            out.append(decode_alignment(d))
        except (KeyError, TypeError, ValueError) as e:
            # unmapped reads come back without an alignment block
            logger.debug("skipping malformed alignment %s: %r", alignment_key(d), e)
    return out

def decode_chromosomes(response: Any) -> list[Chromosome]:
    return [decode_chromosome(_maybe_json(d)) for d in records_of(response, "chromosomes", "features")]


def next_page_token(response: Any) -> str | None:
    if isinstance(response, dict):
        return response.get("nextPageToken") or None
    return None

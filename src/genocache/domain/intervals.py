# genocache/domain/intervals.py
"""Closed-interval set algebra on plain ``(start, stop)`` tuples.

Everything here is contig-agnostic; :mod:`genocache.domain.models` groups by
contig (and resolution) before calling in.
"""
from __future__ import annotations
from typing import Iterable


def merge_intervals(intervals: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    """Sort and fold overlapping or adjacent ranges into a minimal disjoint list."""
    ivs = sorted(intervals)
    if not ivs: return []
    merged: list[list[int]] = [[ivs[0][0], ivs[0][1]]]
    for s, e in ivs[1:]:
        me = merged[-1][1]
        if s <= me + 1: merged[-1][1] = max(me, e)
        else: merged.append([s, e])
    return [(s, e) for s, e in merged]


def subtract_interval(iv: tuple[int, int], covered_merged: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Gaps of ``iv`` left by ``covered_merged``, which must be sorted and disjoint."""
    s, e = iv
    if s > e: return []
    if not covered_merged: return [iv]
    res: list[tuple[int, int]] = []
    cur = s
    for cs, ce in covered_merged:
        if ce < cur: continue
        if cs > e: break
        if cs > cur: res.append((cur, min(e, cs - 1)))
        cur = max(cur, ce + 1)
        if cur > e: break
    if cur <= e: res.append((cur, e))
    return res


def complement(iv: tuple[int, int], covered: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    """Like :func:`subtract_interval` but ``covered`` may be unsorted and overlapping."""
    return subtract_interval(iv, merge_intervals(covered))


def bounding(intervals: Iterable[tuple[int, int]]) -> tuple[int, int]:
    ivs = list(intervals)
    if not ivs:
        raise ValueError("bounding() of an empty collection")
    return min(s for s, _ in ivs), max(e for _, e in ivs)

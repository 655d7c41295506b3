from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Generic, Mapping, TypeVar

from ..adapters.resolution_cache import ResolutionCache
from ..config import get_settings
from ..domain.decoding import next_page_token
from ..domain.models import ContigInterval, FetchOptions, GenomeRange
from ..domain.value_types import NotificationKind
from ..ports.records import RecordStrategy
from ..ports.remote import RangeRequester
from .notify import Handler, Notifier
from .planning import FetchPlan, expand_range, plan_fetch

logger = logging.getLogger(__name__)

T = TypeVar("T")

RangeLike = GenomeRange | ContigInterval | Mapping[str, Any]


def _empty_stats() -> dict[str, int]:
    return {"gaps": 0, "processed_ok": 0, "processed_failed": 0, "requests": 0, "records": 0}


class RangeDataSource(Generic[T]):
    """
    Keeps a local copy of a remote range-queryable track and tells the viewer
    when more of it arrives.

    ``range_changed`` plans synchronously: it works out the resolution, the
    gaps still missing at that resolution, and marks the whole expanded range
    covered before anything is awaited. A second call for an overlapping range
    in the same tick therefore sees a smaller (or empty) set of gaps. Each gap
    is then fetched concurrently; its records go into the cache and a
    ``newdata`` notification is emitted for that gap.

    Failed gaps stay covered and are not retried; call :meth:`clear` and
    re-request to try again.

    Subclasses set the class attributes and implement :meth:`decode`.
    """
    base_pairs_per_fetch: int | None = None   # None: fetch exactly the requested range
    min_start: int = 1                        # expansion never starts below this
    binned: bool = False                      # send binning=<resolution> and store per tier
    paged: bool = False                       # follow nextPageToken
    max_fetch_span: int | None = None         # wider requests are ignored

    def __init__(
        self,
        remote: RangeRequester,
        strategy: RecordStrategy[T],
        *,
        concurrency: int | None = None,
    ) -> None:
        self.remote = remote
        self.strategy = strategy
        self.cache: ResolutionCache[T] = ResolutionCache(strategy)
        self.notifier = Notifier()
        self._sem = asyncio.Semaphore(concurrency or get_settings().concurrency)
        self._tasks: set[asyncio.Task[dict[str, int]]] = set()

    # ---------- notifications ----------

    def on(self, kind: NotificationKind, handler: Handler) -> Handler: return self.notifier.on(kind, handler)
    def once(self, kind: NotificationKind, handler: Handler) -> Handler: return self.notifier.once(kind, handler)
    def off(self, kind: NotificationKind, handler: Handler | None = None) -> None: self.notifier.off(kind, handler)
    def trigger(self, kind: NotificationKind, *args: Any) -> None: self.notifier.emit(kind, *args)

    # ---------- hooks ----------

    def decode(self, response: Any, range: ContigInterval) -> list[T]:
        raise NotImplementedError

    def expand(self, range: ContigInterval) -> ContigInterval:
        if not self.base_pairs_per_fetch:
            return range
        return expand_range(range, self.base_pairs_per_fetch, minimum=self.min_start)

    def request_contig(self, range: ContigInterval) -> str:
        return range.contig

    # ---------- orchestration ----------

    def plan(self, new_range: RangeLike) -> FetchPlan | None:
        """Compute gaps and cover the expanded range. Must not await."""
        interval = ContigInterval.from_genome_range(new_range)
        if self.max_fetch_span and interval.length() > self.max_fetch_span:
            logger.debug("ignoring %s: wider than %d", interval, self.max_fetch_span)
            return None
        plan = plan_fetch(self.cache, interval, expand=self.expand, binned=self.binned)
        if plan is None:
            logger.debug("%s already covered", interval)
            return None
        if self.max_fetch_span and plan.interval.length() > self.max_fetch_span:
            logger.debug("ignoring %s: expanded to %s, wider than %d", interval, plan.interval, self.max_fetch_span)
            return None
        # cover now, before any response, so overlapping calls don't refetch
        self.cache.cover_range(plan.interval, plan.resolution)
        return plan

    def range_changed(self, new_range: RangeLike) -> asyncio.Task[dict[str, int]] | None:
        """Fire-and-forget; progress is reported via notifications. Needs a running loop."""
        loop = asyncio.get_running_loop()  # raise before anything is covered
        plan = self.plan(new_range)
        if plan is None:
            return None
        task = loop.create_task(self._run(plan))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def fetch(self, new_range: RangeLike) -> dict[str, int]:
        """Awaitable ``range_changed``; returns per-call stats."""
        plan = self.plan(new_range)
        return _empty_stats() if plan is None else await self._run(plan)

    async def settle(self) -> None:
        """Wait for every fetch started by ``range_changed``."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _run(self, plan: FetchPlan) -> dict[str, int]:
        t0 = time.monotonic()
        stats = _empty_stats()
        stats["gaps"] = len(plan.gaps)
        self.notifier.emit("networkprogress", len(plan.gaps))

        results = await asyncio.gather(*(self._fetch_gap(g, plan.resolution) for g in plan.gaps))
        for ok, requests, records in results:
            stats["processed_ok" if ok else "processed_failed"] += 1
            stats["requests"] += requests
            stats["records"] += records
        logger.info(
            "fetched %s at resolution %d: %d gaps, %d records in %.3fs",
            plan.interval, plan.resolution, len(plan.gaps), stats["records"], time.monotonic() - t0,
        )
        return stats

    async def _fetch_gap(self, gap: ContigInterval, resolution: int) -> tuple[bool, int, int]:
        options = FetchOptions(binning=resolution if self.binned else None)
        num_requests = records = 0
        token: str | None = None
        try:
            while True:
                num_requests += 1
                if self.paged:
                    self.notifier.emit("networkprogress", {"numRequests": num_requests})
                async with self._sem:
                    # the fetcher rejects zero-width spans; ask for one base more
                    response = await self.remote.get(
                        self.request_contig(gap), gap.start, max(gap.stop, gap.start + 1),
                        replace(options, page_token=token),
                    )
                decoded = self.decode(response, gap)
                for record in decoded:
                    self.cache.put(record, resolution)
                records += len(decoded)
                self.notifier.emit("newdata", gap)  # display data as it comes in
                token = next_page_token(response) if self.paged else None
                if not token:
                    break
        except Exception as e:
            self._notify_failure(f"{type(e).__name__}: {e}")
            return False, num_requests, records
        self.notifier.emit("networkdone")
        return True, num_requests, records

    def _notify_failure(self, message: str) -> None:
        logger.warning(message)
        self.notifier.emit("networkfailure", message)
        self.notifier.emit("networkdone")

    # ---------- reads ----------

    def get_in_range(self, range: RangeLike | None, resolution: int | None = None) -> list[T]:
        """Whatever is cached now, sorted by position. Never touches the network."""
        if range is None:
            return []
        interval = ContigInterval.from_genome_range(range)
        return sorted(self.cache.get(interval, resolution), key=self.strategy.position)

    def covers_range(self, range: RangeLike, resolution: int | None = None) -> bool:
        return self.cache.covers_range(ContigInterval.from_genome_range(range), resolution)

    def clear(self) -> None:
        self.cache.clear()
        self.remote.clear_cache()

    async def aclose(self) -> None:
        await self.remote.aclose()

    async def __aenter__(self) -> "RangeDataSource[T]":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

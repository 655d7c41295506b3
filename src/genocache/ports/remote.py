# genocache/ports/remote.py
from __future__ import annotations

from typing import Any, Protocol
from ..domain.models import FetchOptions


class RangeRequester(Protocol):
    """Port for a range-queryable endpoint: ``GET <base>/<contig>?start=&end=``."""

    num_network_requests: int

    async def get(self, contig: str, start: int, stop: int, options: FetchOptions | None = None) -> Any:
        """Return the decoded JSON body for [start, stop] inclusive, from cache when possible."""

    def clear_cache(self) -> None:
        """Forget every cached response span."""

    async def aclose(self) -> None:
        """Release the underlying connection pool."""

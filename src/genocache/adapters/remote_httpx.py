from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..config import get_settings
from ..domain.errors import InvalidRangeError, RemoteRequestError, RequestTooLargeError
from ..domain.models import Chunk, FetchOptions
from ..ports.remote import RangeRequester

logger = logging.getLogger(__name__)


class RemoteRequest(RangeRequester):
    """
    Range fetches against ``<base_url>/<contig>?start=&end=``, remembering every
    answered span so a request inside an earlier one never hits the network.

    Chunks are keyed by the *requested* span. A shorter body is the server's
    whole answer for that span.
    """
    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float | None = None,
        max_conn: int | None = None,
        http2: bool | None = None,
        max_request_span: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        s = get_settings()
        self.url = base_url.rstrip("/")
        self.max_request_span = max_request_span if max_request_span is not None else s.max_request_span
        max_conn = max_conn or s.max_connections
        self.client = httpx.AsyncClient(
            http2=s.http2 if http2 is None else http2,
            timeout=httpx.Timeout(timeout_s or s.timeout_s),
            limits=httpx.Limits(max_connections=max_conn, max_keepalive_connections=max(1, max_conn // 2)),
            headers={"Accept": "application/json"},
            transport=transport,
        )
        self.chunks: list[Chunk] = []
        self.num_network_requests = 0  # for tests / diagnostics

    async def get(self, contig: str, start: int, stop: int, options: FetchOptions | None = None) -> Any:
        options = options or FetchOptions()
        length = stop - start
        if length <= 0:
            raise InvalidRangeError(f"Requested <0 units ({length}) from {self.url}")

        chunk = self.find_chunk(contig, start, stop, options)
        if chunk is not None:
            logger.debug("cache hit %s:%d-%d (%s)", contig, start, stop, options.modifier or "-")
            return chunk.view(start, stop)
        return await self.get_from_network(contig, start, stop, options)

    def find_chunk(self, contig: str, start: int, stop: int, options: FetchOptions | None = None) -> Chunk | None:
        options = options or FetchOptions()
        if options.page_token:
            return None
        for chunk in self.chunks:
            if chunk.covers(contig, start, stop, options.binning):
                return chunk
        return None

    def get_from_cache(self, contig: str, start: int, stop: int, options: FetchOptions | None = None) -> Any:
        chunk = self.find_chunk(contig, start, stop, options)
        return None if chunk is None else chunk.view(start, stop)

    def endpoint(self, contig: str, start: int, stop: int, options: FetchOptions | None = None) -> str:
        base = f"{self.url}/{contig}?start={start}&end={stop}"
        mod = (options or FetchOptions()).modifier
        return f"{base}&{mod}" if mod else base

    async def get_from_network(self, contig: str, start: int, stop: int, options: FetchOptions) -> Any:
        length = stop - start
        if length > self.max_request_span:
            raise RequestTooLargeError(f"Monster request: won't fetch {length} units from {self.url}")

        endpoint = self.endpoint(contig, start, stop, options)
        self.num_network_requests += 1
        try:
            r = await self.client.get(endpoint)
        except httpx.HTTPError as e:
            raise RemoteRequestError(f"Request for {endpoint} failed: {e}", url=endpoint) from e
        if r.status_code >= 400:
            raise RemoteRequestError(
                f"Request for {endpoint} failed with status: {r.status_code} {r.reason_phrase}",
                url=endpoint, status=r.status_code, text=r.text,
            )

        response = _decode_body(r, endpoint)
        if isinstance(response, dict) and response.get("errorCode"):
            raise RemoteRequestError(
                f"Error from {endpoint}: {json.dumps(response)}", url=endpoint, status=r.status_code, text=r.text,
            )

        # paged answers cover only one page of the span; never serve them from cache
        paged = bool(options.page_token) or (isinstance(response, dict) and bool(response.get("nextPageToken")))
        if not paged:
            self.chunks.append(Chunk(contig, start, stop, options.binning, response))
        return response

    def clear_cache(self) -> None:
        self.chunks = []

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "RemoteRequest":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()


def _decode_body(r: httpx.Response, endpoint: str) -> Any:
    if not r.content or not r.content.strip():
        return None
    try:
        return r.json()
    except ValueError as e:
        raise RemoteRequestError(f"Malformed JSON from {endpoint}: {e}", url=endpoint, status=r.status_code,
                                 text=r.text) from e

from typing import Any

import httpx
import pytest

from genocache.adapters.remote_httpx import RemoteRequest
from genocache.domain.errors import InvalidRangeError, RemoteRequestError, RequestTooLargeError
from genocache.domain.models import Chunk, FetchOptions


@pytest.fixture
def chr17_response() -> list[dict[str, Any]]:
    return [{"contig": "chr17", "position": p, "count": p % 7} for p in range(10, 21)]


class TestRemoteRequest:
    @pytest.mark.asyncio
    async def test_fetches_json_from_server(self, server, chr17_response) -> None:
        server.respond_with("/test/chr17", {"start": 10, "end": 20}, json_body=chr17_response)
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            data = await remote.get("chr17", 10, 20)
            assert data == chr17_response
            assert remote.num_network_requests == 1

    @pytest.mark.asyncio
    async def test_binning_is_sent_as_query_param(self, server) -> None:
        server.respond_with("/cov/chr1", {"start": 1, "end": 100_000, "binning": 10}, json_body=[])
        async with RemoteRequest("http://genome.test/cov/", transport=server.transport) as remote:
            assert remote.endpoint("chr1", 1, 100_000, FetchOptions(binning=10)) == \
                "http://genome.test/cov/chr1?start=1&end=100000&binning=10"
            assert await remote.get("chr1", 1, 100_000, FetchOptions(binning=10)) == []
        assert server.paths() == ["/cov/chr1?start=1&end=100000&binning=10"]

    @pytest.mark.asyncio
    async def test_enclosed_requests_are_served_from_chunks(self, server, chr17_response) -> None:
        server.respond_with("/test/chr17", {"start": 10, "end": 20}, json_body=chr17_response)
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            await remote.get("chr17", 10, 20)
            assert await remote.get("chr17", 10, 20) == chr17_response
            assert await remote.get("chr17", 12, 18) == chr17_response
            assert remote.num_network_requests == 1

    @pytest.mark.asyncio
    async def test_chunks_are_scoped_by_contig_and_binning(self, server, chr17_response) -> None:
        server.respond_with("/test/chr17", {"start": 10, "end": 20}, json_body=chr17_response)
        server.respond_with("/test/chr17", {"start": 10, "end": 20, "binning": 10}, json_body=[])
        server.respond_with("/test/chr18", {"start": 10, "end": 20}, json_body=[])
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            await remote.get("chr17", 10, 20)
            assert await remote.get("chr18", 10, 20) == []
            assert await remote.get("chr17", 10, 20, FetchOptions(binning=10)) == []
            assert remote.num_network_requests == 3

    @pytest.mark.asyncio
    async def test_partially_overlapping_request_goes_to_network(self, server, chr17_response) -> None:
        server.respond_with("/test/chr17", {"start": 10, "end": 20}, json_body=chr17_response)
        server.respond_with("/test/chr17", {"start": 15, "end": 25}, json_body=[])
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            await remote.get("chr17", 10, 20)
            await remote.get("chr17", 15, 25)
            assert remote.num_network_requests == 2
            assert [(c.start, c.stop) for c in remote.chunks] == [(10, 20), (15, 25)]

    @pytest.mark.asyncio
    async def test_non_positive_span_fails_without_network(self, server) -> None:
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            with pytest.raises(InvalidRangeError):
                await remote.get("chr17", 20, 20)
            with pytest.raises(InvalidRangeError):
                await remote.get("chr17", 20, 10)
            assert remote.num_network_requests == 0
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_monster_request_fails_without_network(self, server) -> None:
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            with pytest.raises(RequestTooLargeError):
                await remote.get("chr1", 1, 50_000_002)
            assert remote.num_network_requests == 0

    @pytest.mark.asyncio
    async def test_custom_request_ceiling(self, server) -> None:
        async with RemoteRequest("http://genome.test/t", transport=server.transport, max_request_span=100) as remote:
            with pytest.raises(RequestTooLargeError):
                await remote.get("chr1", 1, 102)

    @pytest.mark.asyncio
    async def test_http_error_status(self, server) -> None:
        server.respond_with("/test/chr17", {"start": 10, "end": 20}, json_body={"message": "boom"}, status=500)
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            with pytest.raises(RemoteRequestError) as exc:
                await remote.get("chr17", 10, 20)
            assert exc.value.status == 500
            assert "500" in str(exc.value)
            assert remote.chunks == []

    @pytest.mark.asyncio
    async def test_unknown_route_is_404(self, server) -> None:
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            with pytest.raises(RemoteRequestError) as exc:
                await remote.get("chrX", 10, 20)
            assert exc.value.status == 404
            assert remote.num_network_requests == 1

    @pytest.mark.asyncio
    async def test_error_code_in_body_is_a_failure(self, server) -> None:
        server.respond_with("/test/chr17", {"start": 10, "end": 20}, json_body={"errorCode": 42, "message": "bad"})
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            with pytest.raises(RemoteRequestError, match="errorCode"):
                await remote.get("chr17", 10, 20)

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with RemoteRequest("http://genome.test/test", transport=httpx.MockTransport(refuse)) as remote:
            with pytest.raises(RemoteRequestError, match="connection refused"):
                await remote.get("chr17", 10, 20)

    @pytest.mark.asyncio
    async def test_empty_body_is_cached_as_no_data(self, server) -> None:
        server.respond_with("/test/chrM", {"start": 1, "end": 1000}, content=b"")
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            assert await remote.get("chrM", 1, 1000) is None
            assert await remote.get("chrM", 1, 1000) is None
            assert remote.num_network_requests == 1

    @pytest.mark.asyncio
    async def test_paged_responses_are_not_chunked(self, server) -> None:
        server.respond_with("/reads/1", {"start": 1, "end": 1000}, json_body={"alignments": [], "nextPageToken": "p2"})
        server.respond_with("/reads/1", {"start": 1, "end": 1000, "pageToken": "p2"}, json_body={"alignments": []})
        async with RemoteRequest("http://genome.test/reads", transport=server.transport) as remote:
            await remote.get("1", 1, 1000)
            await remote.get("1", 1, 1000, FetchOptions(page_token="p2"))
            assert remote.chunks == []
            await remote.get("1", 1, 1000)
            assert remote.num_network_requests == 3

    @pytest.mark.asyncio
    async def test_clear_cache(self, server, chr17_response) -> None:
        server.respond_with("/test/chr17", {"start": 10, "end": 20}, json_body=chr17_response)
        async with RemoteRequest("http://genome.test/test", transport=server.transport) as remote:
            await remote.get("chr17", 10, 20)
            remote.clear_cache()
            await remote.get("chr17", 10, 20)
            assert remote.num_network_requests == 2


class TestChunk:
    def test_bytes_are_sliced_to_the_request(self) -> None:
        chunk = Chunk("chr1", 100, 109, None, b"0123456789")
        assert chunk.covers("chr1", 102, 105, None)
        assert chunk.view(102, 105) == b"2345"

    def test_decoded_json_is_returned_whole(self) -> None:
        chunk = Chunk("chr1", 100, 109, None, [{"position": 101}])
        assert chunk.view(102, 105) == [{"position": 101}]

    def test_does_not_cover_outside_span(self) -> None:
        chunk = Chunk("chr1", 100, 109, 10, [])
        assert not chunk.covers("chr1", 99, 105, 10)
        assert not chunk.covers("chr1", 100, 109, None)
        assert not chunk.covers("chr2", 100, 109, 10)

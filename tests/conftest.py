import json
from pathlib import Path
from typing import Any

import httpx
import pytest

DATA_DIR = Path(__file__).parent / "data"


def load_json(name: str) -> Any:
    return json.loads((DATA_DIR / name).read_text())


class FakeServer:
    """Canned responses keyed by (path, query params); anything else is a 404."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, frozenset[tuple[str, str]]], tuple[int, bytes]] = {}
        self.requests: list[httpx.Request] = []

    def respond_with(self, path: str, params: dict[str, Any], *, json_body: Any = None,
                     status: int = 200, content: bytes | None = None) -> None:
        key = (path, frozenset((k, str(v)) for k, v in params.items()))
        self.routes[key] = (status, content if content is not None else json.dumps(json_body).encode())

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.url.path, frozenset(request.url.params.items()))
        if key not in self.routes:
            return httpx.Response(404, text=f"no route for {request.url}")
        status, body = self.routes[key]
        return httpx.Response(status, content=body, headers={"Content-Type": "application/json"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [f"{r.url.path}?{r.url.query.decode()}" for r in self.requests]


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def features_response() -> Any:
    return load_json("features-chrM-1000-1200.json")


@pytest.fixture
def alignments_response() -> Any:
    return load_json("alignments.ga4gh.1.10000-11000.json")


class Recorder:
    """Collects notifications from a data source in arrival order."""

    def __init__(self, source: Any) -> None:
        self.events: list[tuple[str, Any]] = []
        source.on("newdata", lambda r: self.events.append(("newdata", r)))
        source.on("networkprogress", lambda n: self.events.append(("networkprogress", n)))
        source.on("networkdone", lambda: self.events.append(("networkdone", None)))
        source.on("networkfailure", lambda m: self.events.append(("networkfailure", m)))

    def kinds(self) -> list[str]:
        return [k for k, _ in self.events]

    def of(self, kind: str) -> list[Any]:
        return [v for k, v in self.events if k == kind]


@pytest.fixture
def recorder():
    return Recorder

"""
pytest configuration for the sync agent tests.

Adds src directory to Python path for imports and provides scripted fake
HTTP services (object store, image cache) built on aiohttp's test server.
"""

import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

# (status, body, headers); a bare int means that status with an empty body
ScriptedResponse = Union[int, Tuple[int, bytes], Tuple[int, bytes, dict]]


def _normalize(entry: ScriptedResponse) -> Tuple[int, bytes, dict]:
    if isinstance(entry, int):
        return entry, b"", {}
    if len(entry) == 2:
        return entry[0], entry[1], {}
    return entry


class ScriptedServer(TestServer):
    """
    Test server replaying scripted responses to any GET.

    Responses are consumed in order; the last one repeats once the script
    runs out. Every request's raw path is recorded.
    """

    def __init__(self, responses: Sequence[ScriptedResponse]):
        self.script: List[Tuple[int, bytes, dict]] = [_normalize(r) for r in responses]
        self.requests: List[str] = []

        app = web.Application()
        app.router.add_route("GET", "/{tail:.*}", self._handle)
        super().__init__(app)

    async def _handle(self, request: web.Request) -> web.Response:
        self.requests.append(request.raw_path)
        index = min(len(self.requests), len(self.script)) - 1
        status, body, headers = self.script[index]
        return web.Response(status=status, body=body, headers=headers)

    def url(self, path: str = "") -> str:
        return str(self.make_url("/")).rstrip("/") + path


class RecordingAgent(TestServer):
    """Test server standing in for the agent's /sync endpoint."""

    def __init__(self, status: int = 200):
        self.status = status
        self.payloads: List[dict] = []

        app = web.Application()
        app.router.add_post("/sync", self._handle)
        super().__init__(app)

    async def _handle(self, request: web.Request) -> web.Response:
        self.payloads.append(await request.json())
        return web.Response(status=self.status)


@pytest.fixture
def scripted_server():
    """Factory for ScriptedServer; use as `async with scripted_server([...]) as s:`."""

    def factory(responses: Sequence[ScriptedResponse]) -> ScriptedServer:
        return ScriptedServer(responses)

    return factory


@pytest.fixture
def recording_agent():
    """Factory for RecordingAgent."""

    def factory(status: int = 200) -> RecordingAgent:
        return RecordingAgent(status)

    return factory


@pytest.fixture
def base_dir(tmp_path) -> Path:
    """Base directory for materialized objects."""
    path = tmp_path / "media"
    path.mkdir()
    return path


def hit(body: bytes = b"img") -> Tuple[int, bytes, dict]:
    return 200, body, {"X-Cache": "HIT"}


def miss(body: bytes = b"img", header: Optional[str] = "MISS") -> Tuple[int, bytes, dict]:
    return 200, body, ({"X-Cache": header} if header is not None else {})


@pytest.fixture
def cache_hit():
    return hit


@pytest.fixture
def cache_miss():
    return miss

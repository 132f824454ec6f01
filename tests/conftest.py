from __future__ import annotations

import json
import sys
from pathlib import Path

import httpx
import pytest


def pytest_configure() -> None:
    # Ensure `import codeiq` and the API app import without installing the package.
    repo_root = Path(__file__).resolve().parents[1]
    for d in (repo_root / "src", repo_root / "apps" / "solver_api"):
        if d.exists() and str(d) not in sys.path:
            sys.path.insert(0, str(d))


def delta_line(content: str) -> bytes:
    obj = {"id": "chatcmpl-1", "choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(obj, ensure_ascii=False)}\n".encode("utf-8")


class ChunkStream(httpx.SyncByteStream, httpx.AsyncByteStream):
    """Response body delivered in exactly the given chunks."""

    def __init__(self, chunks: list[bytes]):
        self._chunks = chunks

    def __iter__(self):
        yield from self._chunks

    async def __aiter__(self):
        for c in self._chunks:
            yield c


class FakeUpstream:
    def __init__(self) -> None:
        self.status_code = 200
        self.chunks: list[bytes] = []
        self.error_body: bytes = b""
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, content=self.error_body)
        return httpx.Response(
            200,
            headers={"Content-Type": "text/event-stream"},
            stream=ChunkStream(list(self.chunks)),
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream() -> FakeUpstream:
    up = FakeUpstream()
    up.chunks = [
        b": OPENROUTER PROCESSING\n\n",
        delta_line("Hi")[:20],
        delta_line("Hi")[20:],
        b"\n",
        delta_line(" there"),
        b"data: [DONE]\n\n",
    ]
    return up

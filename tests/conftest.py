"""Shared fixtures: scripted vendor endpoints behind httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from switchboard.gateway.transport import HttpTransport
from switchboard.gateway.types import CanonicalRequest, Message


class _InterruptedBody(httpx.AsyncByteStream):
    """Body that delivers some bytes, then the peer drops the connection."""

    def __init__(self, chunks: list[bytes], error: Exception):
        self._chunks = chunks
        self._error = error

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        raise self._error


class FakeVendor:
    """Scripted HTTP endpoint.

    Replies are served in order; the last one repeats once the script runs
    out. Every request is recorded.
    """

    def __init__(self):
        self.script: list[httpx.Response | Exception] = []
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.script)) - 1
        reply = self.script[index]
        if isinstance(reply, Exception):
            raise reply
        return reply

    # Scripting helpers

    def json(self, body, status: int = 200) -> FakeVendor:
        self.script.append(httpx.Response(status, json=body))
        return self

    def text(self, body: str, status: int) -> FakeVendor:
        self.script.append(httpx.Response(status, text=body))
        return self

    def lines(self, *lines: str) -> FakeVendor:
        self.script.append(httpx.Response(200, text="".join(f"{line}\n" for line in lines)))
        return self

    def interrupted(self, *lines: str, error: Exception | None = None) -> FakeVendor:
        chunks = [f"{line}\n".encode() for line in lines]
        error = error or httpx.RemoteProtocolError("peer closed connection without sending complete message body")
        self.script.append(httpx.Response(200, stream=_InterruptedBody(chunks, error)))
        return self

    def fail(self, error: Exception) -> FakeVendor:
        self.script.append(error)
        return self

    # Inspection helpers

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def vendor() -> FakeVendor:
    return FakeVendor()


@pytest.fixture
def transport(vendor) -> HttpTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(vendor))
    return HttpTransport(max_retries=3, retry_delay=0, client=client)


@pytest.fixture
def hello_request() -> CanonicalRequest:
    return CanonicalRequest(model="gpt-4", messages=(Message.user("Hello!"),))

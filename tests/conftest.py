"""
Shared fixtures: a scriptable fake upstream served through httpx.MockTransport.
"""

from typing import Callable, Union

import httpx
import pytest
import pytest_asyncio

from core.config import Settings
from core.upstream import UpstreamClient
from tools.invocation import ToolGate


BASE_URL = "https://upstream.test"

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """Replies to (method, path) with a queue of canned responses.

    The last reply of a route is reused once the queue runs dry.  A reply
    may be a callable, which can build a response or raise a transport error.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Reply]] = {}
        self._clients: list[httpx.AsyncClient] = []

    def add(self, method: str, path: str, *replies: Reply) -> None:
        self._routes.setdefault((method, path), []).extend(replies)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, text=f"no route for {request.method} {request.url.path}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(reply):
            return reply(request)
        # Fresh copy: a Response object must not be sent twice.
        return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)

    def client(self) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        self._clients.append(client)
        return client

    async def aclose(self) -> None:
        for client in self._clients:
            await client.aclose()

    def calls(self, method: str, path: str) -> int:
        return sum(
            1 for r in self.requests if r.method == method and r.url.path == path
        )


def connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection reset", request=request)


@pytest_asyncio.fixture
async def upstream():
    fake = FakeUpstream()
    yield fake
    await fake.aclose()


@pytest.fixture
def settings():
    return Settings(api_token="test-token", api_base_url=BASE_URL)


@pytest.fixture
def client(upstream):
    return UpstreamClient(
        "test-token", http=upstream.client(), base_url=BASE_URL, user_agent="test/1.0"
    )


@pytest.fixture
def gate(settings, upstream):
    return ToolGate(settings, http_client=upstream.client())

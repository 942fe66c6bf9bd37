import json

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from overseer import OverseerAPI


TEST_API_KEY = "ovsk_test_key"
TEST_ORG_ID = "org_test_123"


class StubOverseer:
    """Stand-in for the Overseer service that records every request."""

    def __init__(self):
        self.requests = []
        self._routes = {}
        self.url = ""

    def reply(self, method, path, status=200, body=None, text=None, reason=None, headers=None):
        self._routes[(method, path)] = (status, body, text, reason, headers)

    @property
    def last(self):
        return self.requests[-1]

    async def handle(self, request):
        raw = await request.text()
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "headers": request.headers.copy(),
            "json": json.loads(raw) if raw else None,
        })

        if (request.method, request.path) not in self._routes:
            return web.json_response({"error": "Not found"}, status=404)

        status, body, text, reason, headers = self._routes[(request.method, request.path)]
        if text is not None:
            return web.Response(status=status, text=text, reason=reason, headers=headers)
        return web.json_response(body, status=status, reason=reason, headers=headers)


@pytest_asyncio.fixture
async def stub():
    stub = StubOverseer()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", stub.handle)

    server = TestServer(app)
    await server.start_server()
    stub.url = str(server.make_url("")).rstrip("/")
    yield stub
    await server.close()


@pytest_asyncio.fixture
async def client(stub):
    """Client with an organization, inside its context manager."""
    async with OverseerAPI(api_key=TEST_API_KEY, organization_id=TEST_ORG_ID, base_url=stub.url) as api:
        yield api


@pytest.fixture
def bare_client(stub):
    """Client without organization or context manager."""
    return OverseerAPI(api_key=TEST_API_KEY, base_url=stub.url)

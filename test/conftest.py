import json

import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils


class FakeUpstream:
    """
    A stand-in GDC GraphQL endpoint. Each test sets the canned reply and
    inspects the requests that reached it.
    """

    def __init__(self):
        self.status = 200
        self.body = json.dumps({"data": {}})
        self.content_type = "application/json"
        self.requests = []
        self.server = None

    def reply(self, status=200, body="", content_type="application/json"):
        self.status = status
        self.body = body
        self.content_type = content_type

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append({"headers": dict(request.headers), "json": await request.json(), "query": dict(request.query)})
        if isinstance(self.body, bytes):
            return web.Response(status=self.status, body=self.body, content_type=self.content_type, charset="utf-8")
        return web.Response(status=self.status, text=self.body, content_type=self.content_type)

    @property
    def url(self) -> str:
        return str(self.server.make_url("/v0/graphql"))


@pytest_asyncio.fixture
async def upstream():
    fake = FakeUpstream()
    app = web.Application()
    app.router.add_post("/v0/graphql", fake.handle)
    fake.server = test_utils.TestServer(app)
    await fake.server.start_server()
    yield fake
    await fake.server.close()

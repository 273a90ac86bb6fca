"""
Local stand-in for the Bitbucket REST API.

Runs an aiohttp application on an ephemeral port so the real HTTP client
can be exercised end to end.
"""

from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable

from aiohttp import web
from aiohttp.test_utils import TestServer

from mcp_server_bitbucket.bitbucket.auth import Credentials
from mcp_server_bitbucket.bitbucket.client import ClientConfig

RequestHandler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@asynccontextmanager
async def stub_bitbucket(handler: RequestHandler):
    """Serve ``handler`` for every method and path on a local port."""
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


def stub_client_config(server: TestServer, **overrides: Any) -> ClientConfig:
    """ClientConfig pointing at a stub server's ``/2.0`` prefix."""
    return ClientConfig(
        credentials=Credentials(username="testuser", app_password="app-secret"),
        base_url=str(server.make_url("/2.0")),
        **overrides,
    )


def recording_handler(response_factory: Callable[[web.Request], web.StreamResponse]):
    """Build a handler that records each request and replies via ``response_factory``.

    Returns:
        The handler and the list it appends request snapshots to.
    """
    seen = []

    async def handler(request: web.Request) -> web.StreamResponse:
        body = await request.text()
        seen.append(
            {
                "method": request.method,
                "path": request.path,
                "raw_path": request.raw_path,
                "query": dict(request.query),
                "headers": dict(request.headers),
                "body": body,
            }
        )
        return response_factory(request)

    return handler, seen

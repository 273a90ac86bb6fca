"""Tests for BitbucketClient against a local stub Bitbucket server."""

import asyncio
import base64

import pytest
from aiohttp import web

from fixtures.stub_server import recording_handler, stub_bitbucket, stub_client_config
from mcp_server_bitbucket.bitbucket.auth import Credentials
from mcp_server_bitbucket.bitbucket.client import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_MS,
    BitbucketClient,
    ClientConfig,
)
from mcp_server_bitbucket.bitbucket.errors import BitbucketError, ErrorKind


class TestClientConfig:
    """Test client configuration defaults."""

    def test_defaults(self, client_config):
        assert client_config.base_url == DEFAULT_BASE_URL == "https://api.bitbucket.org/2.0"
        assert client_config.timeout_ms == DEFAULT_TIMEOUT_MS == 30000

    def test_config_is_frozen(self, client_config):
        with pytest.raises(AttributeError):
            client_config.base_url = "http://elsewhere"

    def test_client_rejects_empty_credentials(self):
        with pytest.raises(BitbucketError) as exc_info:
            BitbucketClient(ClientConfig(credentials=Credentials(username="", app_password="x")))

        assert exc_info.value.kind is ErrorKind.CONFIGURATION

    def test_base_url_trailing_slash_is_trimmed(self):
        config = ClientConfig(
            credentials=Credentials(username="u", app_password="p"),
            base_url="https://api.bitbucket.org/2.0/",
        )
        assert BitbucketClient(config).base_url == "https://api.bitbucket.org/2.0"


class TestClientRequests:
    """Test successful round trips."""

    @pytest.mark.asyncio
    async def test_get_sends_auth_and_json_headers(self):
        handler, seen = recording_handler(lambda request: web.json_response({"ok": True}))

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                result = await client.get("/repositories/ws/repo")

        assert result == {"ok": True}
        assert len(seen) == 1
        request = seen[0]
        assert request["method"] == "GET"
        assert request["path"] == "/2.0/repositories/ws/repo"
        assert request["headers"]["Authorization"] == "Basic " + base64.b64encode(b"testuser:app-secret").decode()
        assert request["headers"]["Accept"] == "application/json"
        assert request["headers"]["Content-Type"] == "application/json"
        assert request["headers"]["User-Agent"] == "MCP-Bitbucket-Server/1.0.0"

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self):
        handler, seen = recording_handler(lambda request: web.json_response({"id": 1}, status=201))

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                result = await client.post("/repositories/ws/repo/pullrequests", {"title": "New"})

        assert result == {"id": 1}
        assert seen[0]["method"] == "POST"
        assert seen[0]["body"] == '{"title": "New"}'

    @pytest.mark.asyncio
    async def test_query_params_are_passed(self):
        handler, seen = recording_handler(lambda request: web.json_response({"values": []}))

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                await client.get("/repositories/ws/repo/pullrequests", params={"state": "OPEN"})
                await client.get("/repositories/ws/repo/pullrequests?page=2&pagelen=10")

        assert seen[0]["query"] == {"state": "OPEN"}
        assert seen[1]["query"] == {"page": "2", "pagelen": "10"}

    @pytest.mark.asyncio
    async def test_encoded_segments_reach_server_encoded(self):
        handler, seen = recording_handler(lambda request: web.json_response({"name": "feature/login"}))

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                await client.get("/repositories/ws/repo/refs/branches/feature%2Flogin")

        assert seen[0]["raw_path"].endswith("/refs/branches/feature%2Flogin")

    @pytest.mark.asyncio
    async def test_text_body_returned_as_string(self):
        diff = "diff --git a/app.py b/app.py\n+print('hi')\n"
        handler, _ = recording_handler(lambda request: web.Response(text=diff, content_type="text/plain"))

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                result = await client.get("/repositories/ws/repo/pullrequests/1/diff")

        assert result == diff

    @pytest.mark.asyncio
    async def test_non_utf8_text_body_is_decoded_with_replacement(self):
        handler, _ = recording_handler(
            lambda request: web.Response(body=b"+print('caf\xe9')\n", content_type="text/plain")
        )

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                result = await client.get("/repositories/ws/repo/pullrequests/1/diff")

        assert result == "+print('caf�')\n"

    @pytest.mark.asyncio
    async def test_declared_charset_is_honoured(self):
        handler, _ = recording_handler(
            lambda request: web.Response(body=b"caf\xe9", content_type="text/plain", charset="latin-1")
        )

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                result = await client.get("/repositories/ws/repo/pullrequests/1/diff")

        assert result == "café"

    @pytest.mark.asyncio
    async def test_empty_body_returns_none(self):
        handler, seen = recording_handler(lambda request: web.Response(status=204))

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                result = await client.delete("/repositories/ws/repo/pullrequests/1/approve")

        assert result is None
        assert seen[0]["method"] == "DELETE"

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, client_config):
        client = BitbucketClient(client_config)

        await client.close()
        await client.close()


class TestClientErrors:
    """Test error normalization of failed round trips."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,kind",
        [
            (401, ErrorKind.AUTHENTICATION),
            (403, ErrorKind.PERMISSION),
            (404, ErrorKind.NOT_FOUND),
            (429, ErrorKind.RATE_LIMIT),
            (500, ErrorKind.API),
        ],
    )
    async def test_status_is_classified(self, status, kind):
        handler, _ = recording_handler(
            lambda request: web.json_response({"error": {"message": "Nope"}}, status=status)
        )

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                with pytest.raises(BitbucketError) as exc_info:
                    await client.get("/repositories/ws/repo")

        assert exc_info.value.kind is kind
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_not_found_message(self):
        handler, _ = recording_handler(
            lambda request: web.json_response({"error": {"message": "Repository not found"}}, status=404)
        )

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                with pytest.raises(BitbucketError) as exc_info:
                    await client.get("/repositories/ws/missing")

        assert exc_info.value.message == "Resource not found: Repository not found"

    @pytest.mark.asyncio
    async def test_rate_limit_reads_retry_after_header(self):
        handler, _ = recording_handler(
            lambda request: web.json_response(
                {"error": {"message": "Rate limit exceeded"}},
                status=429,
                headers={"Retry-After": "60"},
            )
        )

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                with pytest.raises(BitbucketError) as exc_info:
                    await client.get("/repositories/ws/repo")

        assert exc_info.value.kind is ErrorKind.RATE_LIMIT
        assert exc_info.value.retry_after == 60

    @pytest.mark.asyncio
    async def test_generic_error_with_text_body(self):
        handler, _ = recording_handler(
            lambda request: web.Response(text="Service Unavailable", status=503, content_type="text/plain")
        )

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                with pytest.raises(BitbucketError) as exc_info:
                    await client.get("/repositories/ws/repo")

        error = exc_info.value
        assert error.kind is ErrorKind.API
        assert error.status_code == 503
        assert error.message == "Service Unavailable"
        assert error.response == "Service Unavailable"

    @pytest.mark.asyncio
    async def test_undecodable_error_body_is_still_classified(self):
        handler, _ = recording_handler(
            lambda request: web.Response(body=b"\xff\xfe boom", status=500, content_type="text/plain")
        )

        async with stub_bitbucket(handler) as server:
            async with BitbucketClient(stub_client_config(server)) as client:
                with pytest.raises(BitbucketError) as exc_info:
                    await client.get("/repositories/ws/repo/pullrequests/1")

        error = exc_info.value
        assert error.kind is ErrorKind.API
        assert error.status_code == 500
        assert error.message == "�� boom"

    @pytest.mark.asyncio
    async def test_connection_refused_is_transport_error(self):
        config = ClientConfig(
            credentials=Credentials(username="testuser", app_password="app-secret"),
            base_url="http://127.0.0.1:1/2.0",
        )

        async with BitbucketClient(config) as client:
            with pytest.raises(BitbucketError) as exc_info:
                await client.get("/repositories/ws/repo")

        assert exc_info.value.kind is ErrorKind.TRANSPORT
        assert exc_info.value.status_code is None
        assert exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self):
        async def slow(request: web.Request) -> web.StreamResponse:
            await asyncio.sleep(0.5)
            return web.json_response({})

        async with stub_bitbucket(slow) as server:
            async with BitbucketClient(stub_client_config(server, timeout_ms=50)) as client:
                with pytest.raises(BitbucketError) as exc_info:
                    await client.get("/repositories/ws/repo")

        assert exc_info.value.kind is ErrorKind.TRANSPORT
        assert exc_info.value.status_code is None

"""HTTP client for the Bitbucket Cloud REST API"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

from .auth import AuthHandler, Credentials
from .errors import classify_http_error, transport_error

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.bitbucket.org/2.0"
DEFAULT_TIMEOUT_MS = 30000
USER_AGENT = "MCP-Bitbucket-Server/1.0.0"


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for a single ``BitbucketClient``."""

    credentials: Credentials
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS


class BitbucketClient:
    """Authenticated JSON client; the only place HTTP failures are translated.

    Every non-2xx response and every transport failure is raised as a
    ``BitbucketError`` (see ``errors.classify_http_error``).
    """

    def __init__(self, config: ClientConfig, session: Optional[aiohttp.ClientSession] = None):
        self._auth = AuthHandler(config.credentials)
        self._base_url = config.base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_ms / 1000)
        self._headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            **self._auth.headers(),
        }
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "BitbucketClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            if not self._session.closed:
                await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        # Created lazily so the session binds to the running event loop
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Make GET request to Bitbucket API"""
        return await self._request("GET", path, params=params)

    async def post(
        self, path: str, body: Any = None, params: Optional[dict[str, Any]] = None
    ) -> Any:
        """Make POST request to Bitbucket API"""
        return await self._request("POST", path, body=body, params=params)

    async def put(
        self, path: str, body: Any = None, params: Optional[dict[str, Any]] = None
    ) -> Any:
        """Make PUT request to Bitbucket API"""
        return await self._request("PUT", path, body=body, params=params)

    async def delete(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Make DELETE request to Bitbucket API"""
        return await self._request("DELETE", path, params=params)

    async def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        url = f"{self._base_url}/{path.lstrip('/')}"
        session = self._get_session()
        logger.debug(f"{method} {url}")

        try:
            async with session.request(
                method,
                url,
                json=body,
                params=params,
                headers=self._headers,
                timeout=self._timeout,
            ) as response:
                payload = await self._read_body(response)
                if response.status >= 400:
                    logger.debug(f"{method} {url} failed with status {response.status}")
                    raise classify_http_error(response.status, payload, response.headers)
                return payload
        except asyncio.TimeoutError as e:
            raise transport_error(
                str(e) or f"Request timed out after {self._timeout.total}s"
            ) from e
        except aiohttp.ClientError as e:
            raise transport_error(str(e)) from e

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        """Decode a JSON body, fall back to text; empty bodies become None."""
        raw = await response.read()
        if not raw:
            return None
        text = _decode_text(raw, response.charset)
        content_type = response.content_type or ""
        if content_type == "application/json" or content_type.endswith("+json"):
            try:
                return json.loads(text)
            except ValueError:
                logger.warning(f"Response declared {content_type} but body is not valid JSON")
                return text
        return text


def _decode_text(raw: bytes, charset: Optional[str]) -> str:
    """Decode a body leniently; undecodable bytes become U+FFFD."""
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        logger.debug(f"Unknown response charset {charset!r}, decoding as utf-8")
        return raw.decode("utf-8", errors="replace")

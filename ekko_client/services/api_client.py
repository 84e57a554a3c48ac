"""Async HTTP client for the ekko server's session-control endpoints."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import EkkoConfig

logger = logging.getLogger(__name__)


class APIError(Exception):
    """User-facing API error with a category.

    Categories: "connection", "timeout", "http", "network".
    """

    def __init__(self, message: str, category: str = "network", status: Optional[int] = None) -> None:
        self.message = message
        self.category = category
        self.status = status
        super().__init__(message)


class SessionAPI:
    """Thin aiohttp wrapper around /sources, /start and /stop.

    Every method either returns the decoded JSON body or raises APIError.
    The underlying ClientSession is created on first use so the object can
    be built outside a running loop.
    """

    def __init__(self,
                 base_url: str = "http://localhost:8080",
                 timeout: float = 10.0,
                 sources_path: str = "/sources",
                 start_path: str = "/start",
                 stop_path: str = "/stop",
                 stream_path: str = "/sse"):
        """Initialize the API client.

        Args:
            base_url: Base URL of the ekko server
            timeout: Total timeout in seconds for each control request
            sources_path: Path of the source-listing endpoint
            start_path: Path of the begin-session endpoint
            stop_path: Path of the end-session endpoint
            stream_path: Path of the push-stream endpoint
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.sources_path = sources_path
        self.start_path = start_path
        self.stop_path = stop_path
        self.stream_path = stream_path
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_config(cls, config: EkkoConfig) -> "SessionAPI":
        return cls(
            base_url=config.get('server.base_url'),
            timeout=float(config.get('server.request_timeout', 10)),
            sources_path=config.get('server.sources_path', '/sources'),
            start_path=config.get('server.start_path', '/start'),
            stop_path=config.get('server.stop_path', '/stop'),
            stream_path=config.get('server.stream_path', '/sse'),
        )

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @property
    def stream_url(self) -> str:
        return self.url(self.stream_path)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Execute an HTTP request and decode its JSON body.

        Args:
            method: HTTP method name ("GET", "POST")
            path: Endpoint path (e.g. "/start")
            **kwargs: Passed through to aiohttp (json, params, ...)

        Returns:
            Decoded JSON body, or None for an empty/non-JSON success body

        Raises:
            APIError: On connection, timeout, HTTP status or network errors
        """
        url = self.url(path)
        try:
            async with self._get_session().request(method, url, **kwargs) as response:
                text = await response.text()
                body = self._decode(text)
                if response.status >= 400:
                    raise APIError(self._error_detail(body, text, response.status),
                                   category="http", status=response.status)
                return body
        except aiohttp.ClientConnectorError:
            raise APIError(f"Server is not reachable at {self.base_url}", category="connection") from None
        except asyncio.TimeoutError:
            raise APIError("Request timed out. The server may be overloaded.", category="timeout") from None
        except aiohttp.ClientError as e:
            raise APIError(f"Network error: {e}", category="network") from None

    @staticmethod
    def _decode(text: str) -> Any:
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None

    @staticmethod
    def _error_detail(body: Any, text: str, status: int) -> str:
        if isinstance(body, dict) and body.get("error"):
            detail = str(body["error"])
            if body.get("cause"):
                detail = f"{detail}: {body['cause']}"
            return detail
        return text.strip() or f"HTTP {status}"

    # -- sources --

    async def list_sources(self) -> List[str]:
        """Fetch the audio sources the server can record from."""
        body = await self._request("GET", self.sources_path)
        if not isinstance(body, list):
            return []
        return [source for source in body if isinstance(source, str)]

    # -- session --

    async def start_session(self, source: str, duration: int) -> Dict[str, Any]:
        body = await self._request("POST", self.start_path, json={"source": source, "duration": duration})
        logger.info(f"Session started on {source} ({duration}s chunks)")
        return body if isinstance(body, dict) else {}

    async def stop_session(self) -> Dict[str, Any]:
        body = await self._request("POST", self.stop_path)
        logger.info("Session stopped")
        return body if isinstance(body, dict) else {}

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

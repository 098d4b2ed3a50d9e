"""
Async FlowKore API client.

Fully asynchronous transport with comprehensive configuration support.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional, Any, Callable, AsyncIterator
import aiohttp

from .config import APIConfig
from .errors import FlowKoreAPIError, APIErrorCodes
from .sse import SSEParser, ServerSentEvent
from ..logging import get_logger


TokenProvider = Callable[[], Optional[str]]


class EventStream:
    """Async iterator over the events of an open SSE response."""

    def __init__(self, response: aiohttp.ClientResponse):
        self._response = response
        self._parser = SSEParser()

    @property
    def last_event_id(self) -> Optional[str]:
        return self._parser.last_event_id

    def __aiter__(self) -> AsyncIterator[ServerSentEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ServerSentEvent]:
        async for raw_line in self._response.content:
            event = self._parser.feed_line(raw_line.decode('utf-8', errors='replace'))
            if event is not None:
                yield event
        # Flush an event left unterminated at EOF
        event = self._parser.feed_line('')
        if event is not None:
            yield event


class AsyncAPIClient:
    """
    Asynchronous FlowKore API client.

    This is the Backend API collaborator used by the auth and realtime
    layers: ``request`` for JSON calls and ``open_event_stream`` for the
    realtime feed.

    Features:
    - Full async/await support
    - Configurable proxy, SSL, timeouts
    - Connection pooling
    - Bearer token injection from a token provider

    Example:
        >>> config = APIConfig(base_url='https://api.example.com')
        >>> async with AsyncAPIClient(config) as client:
        ...     records = await client.request('GET', '/api/collections/orders/records')
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        token_provider: Optional[TokenProvider] = None
    ):
        """
        Initialize async API client.

        Args:
            config: API configuration (uses defaults if not provided)
            token_provider: Callable returning the current access token
        """
        self._config = config or APIConfig.default()
        self._token_provider = token_provider
        self._session: Optional[aiohttp.ClientSession] = None
        self._connector: Optional[aiohttp.TCPConnector] = None
        self._closed = False

        self._logger = get_logger('flowkore.api')
        # Only set level if root logger has no handlers (basicConfig not called)
        root_logger = logging.getLogger()
        if not root_logger.handlers:
            self._logger.setLevel(self._config.log_level)

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def token_provider(self) -> Optional[TokenProvider]:
        return self._token_provider

    @token_provider.setter
    def token_provider(self, value: Optional[TokenProvider]):
        self._token_provider = value

    async def __aenter__(self) -> 'AsyncAPIClient':
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            self._connector = aiohttp.TCPConnector(
                **self._config.get_connector_kwargs()
            )
            self._session = aiohttp.ClientSession(
                connector=self._connector,
                **self._config.get_session_kwargs()
            )
            self._closed = False
        return self._session

    async def close(self):
        """Close client and release resources."""
        self._closed = True

        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

        if self._connector and not self._connector.closed:
            await self._connector.close()
            self._connector = None

    def build_url(self, path: str) -> str:
        """Joins a path onto the configured base URL."""
        if path.startswith('http://') or path.startswith('https://'):
            return path
        return f"{self._config.base_url}/{path.lstrip('/')}"

    def _build_headers(self, auth: bool, json_body: bool = True) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'} if json_body else {}
        if auth and self._token_provider is not None:
            token = self._token_provider()
            if token:
                headers['Authorization'] = f'Bearer {token}'
        return headers

    def _proxy(self) -> Optional[str]:
        return self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
        auth: bool = True
    ) -> Any:
        """
        Make an async request to the FlowKore API.

        Args:
            method: HTTP method
            path: Path relative to the base URL (e.g. '/api/auth/login')
            body: JSON-serializable request body, or ``aiohttp.FormData``
                for multipart uploads
            auth: Attach the bearer token when one is available

        Returns:
            Decoded JSON, or the raw text when the body is not JSON

        Raises:
            FlowKoreAPIError: On non-2xx responses and transport failures
        """
        session = await self._ensure_session()
        url = self.build_url(path)
        multipart = isinstance(body, aiohttp.FormData)
        if multipart:
            data = body
        else:
            data = json.dumps(body) if body is not None else None

        self._logger.debug(f"{method} {url}")

        try:
            async with session.request(
                method,
                url,
                data=data,
                headers=self._build_headers(auth, json_body=not multipart),
                proxy=self._proxy()
            ) as response:
                response_text = await response.text()
                result = self._parse_response(response_text)

                if response.status >= 400:
                    self._logger.debug(f"{method} {url} -> {response.status}")
                    raise FlowKoreAPIError.from_response_body(response.status, result)

                return result

        except aiohttp.ClientError as e:
            self._logger.error(f"Network error: {e}")
            raise FlowKoreAPIError(
                APIErrorCodes.NETWORK_ERROR, f"Network error: {e}"
            ) from e
        except asyncio.TimeoutError as e:
            self._logger.error(f"{method} {url} timed out")
            raise FlowKoreAPIError(
                APIErrorCodes.NETWORK_ERROR, "Network error: request timed out"
            ) from e

    @asynccontextmanager
    async def open_event_stream(self, url: str) -> AsyncIterator[EventStream]:
        """
        Open a Server-Sent Events stream.

        Usage:
            >>> async with client.open_event_stream(url) as stream:
            ...     async for event in stream:
            ...         print(event.event, event.data)

        Raises:
            FlowKoreAPIError: If the stream cannot be opened
        """
        session = await self._ensure_session()
        url = self.build_url(url)

        try:
            async with session.get(
                url,
                headers={'Accept': 'text/event-stream', 'Cache-Control': 'no-cache'},
                timeout=self._config.timeout.to_stream_timeout(),
                proxy=self._proxy()
            ) as response:
                if response.status >= 400:
                    text = await response.text()
                    raise FlowKoreAPIError.from_response_body(
                        response.status, self._parse_response(text)
                    )
                yield EventStream(response)
        except aiohttp.ClientError as e:
            raise FlowKoreAPIError(
                APIErrorCodes.NETWORK_ERROR, f"Stream error: {e}"
            ) from e
        except asyncio.TimeoutError as e:
            raise FlowKoreAPIError(
                APIErrorCodes.NETWORK_ERROR, "Stream error: connection timed out"
            ) from e

    def _parse_response(self, response_text: str) -> Any:
        """Parse API response."""
        if not response_text:
            return None
        try:
            return json.loads(response_text)
        except json.JSONDecodeError:
            return response_text

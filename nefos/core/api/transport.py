"""
Async HTTP transport.

One aiohttp session with the default Origin/Referer headers and a cookie
jar that is loaded from disk when the transport opens and written back
only on demand.
"""
import asyncio
import json
from dataclasses import dataclass
from typing import Dict, Optional, Any

import aiohttp
from multidict import CIMultiDict, CIMultiDictProxy
from yarl import URL

from .config import APIConfig
from .cookies import CookieStore, CookieDump, PersistentCookieJar, dump_jar
from ..exceptions import TransportError, ProtocolError
from ..logging import get_logger


@dataclass
class TransportResponse:
    """Fully read HTTP response."""
    status: int
    headers: CIMultiDictProxy
    text: str
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        """Get a response header (case-insensitive)."""
        return self.headers.get(name)

    def json(self) -> Any:
        """
        Parse the body as JSON.

        Raises:
            ProtocolError: If the body is not JSON
        """
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as e:
            raise ProtocolError(
                f"Expected a JSON body from {self.url}: {e}",
                status_code=self.status
            ) from e

    def json_or_none(self) -> Any:
        """Parse the body as JSON, returning None for empty or non-JSON bodies."""
        try:
            return json.loads(self.text) if self.text else None
        except json.JSONDecodeError:
            return None


class AsyncTransport:
    """
    Asynchronous transport shared by every call of one authenticated session.

    The transport is the single owner of the cookie jar. Requests and
    cookie saves are serialized through one lock, so the jar is never
    read and rewritten at the same time.

    Example:
        >>> async with AsyncTransport(APIConfig.default()) as transport:
        ...     response = await transport.post(url, json={'a': 1})
        ...     await transport.save_cookies()
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        cookie_store: Optional[CookieStore] = None
    ):
        """
        Initialize transport.

        Args:
            config: API configuration (uses defaults if not provided)
            cookie_store: Cookie persistence (defaults to config.cookie_file)
        """
        self._config = config or APIConfig.default()
        self._cookie_store = cookie_store or CookieStore(self._config.cookie_file)
        self._session: Optional[aiohttp.ClientSession] = None
        self._cookie_jar: Optional[PersistentCookieJar] = None
        self._lock: Optional[asyncio.Lock] = None
        self._closed = False
        self._logger = get_logger('nefos.transport')

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    @property
    def cookie_store(self) -> CookieStore:
        return self._cookie_store

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> 'AsyncTransport':
        """Async context manager entry."""
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def open(self) -> None:
        """Create the HTTP session and load persisted cookies."""
        await self._ensure_session()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._closed:
            raise TransportError("Transport is closed")

        if self._lock is None:
            self._lock = asyncio.Lock()

        if self._session is None or self._session.closed:
            if self._cookie_jar is None:
                jar = PersistentCookieJar()
                await self._cookie_store.load(jar)
                self._cookie_jar = jar

            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            self._session = aiohttp.ClientSession(
                connector=connector,
                cookie_jar=self._cookie_jar,
                **self._config.get_session_kwargs()
            )
        return self._session

    async def close(self):
        """Close transport and release resources. Cookies are not saved."""
        self._closed = True

        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        data: Any = None
    ) -> TransportResponse:
        """
        Send a request and read the whole response.

        Args:
            method: HTTP method
            url: Already-encoded absolute URL
            json: JSON body
            headers: Extra request headers
            data: Raw body

        Returns:
            TransportResponse

        Raises:
            TransportError: If the request could not be completed
        """
        session = await self._ensure_session()
        proxy = self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None

        self._logger.debug(f"{method} {url}")

        async with self._lock:
            try:
                async with session.request(
                    method,
                    URL(url, encoded=True),
                    json=json,
                    data=data,
                    headers=headers,
                    proxy=proxy
                ) as response:
                    text = await response.text()
                    result = TransportResponse(
                        status=response.status,
                        headers=CIMultiDictProxy(CIMultiDict(response.headers)),
                        text=text,
                        url=str(response.url)
                    )
            except asyncio.TimeoutError as e:
                self._logger.error(f"Timeout: {method} {url}")
                raise TransportError(f"Request timed out: {method} {url}") from e
            except aiohttp.ClientError as e:
                self._logger.error(f"Network error: {e}")
                raise TransportError(f"Network error: {e}") from e
            except UnicodeDecodeError as e:
                raise TransportError(f"Unreadable response body from {url}: {e}") from e

        self._logger.debug(f"Response {result.status} from {url}")
        return result

    async def get(self, url: str, **kwargs) -> TransportResponse:
        return await self.request('GET', url, **kwargs)

    async def post(self, url: str, **kwargs) -> TransportResponse:
        return await self.request('POST', url, **kwargs)

    async def _ensure_jar(self) -> None:
        if self._cookie_jar is None:
            await self._ensure_session()

    async def snapshot_cookies(self) -> CookieDump:
        """Get a copy of the current jar contents."""
        await self._ensure_jar()
        async with self._lock:
            return dump_jar(self._cookie_jar)

    async def save_cookies(self) -> int:
        """
        Overwrite the cookie store with the current jar contents.

        Returns:
            Number of cookies saved
        """
        await self._ensure_jar()
        async with self._lock:
            count = await self._cookie_store.save(self._cookie_jar)
        self._logger.info(f"Saved {count} cookies to {self._cookie_store.path}")
        return count

"""
Static HTML browser using httpx.

This collaborator is optimized for sites that don't require JavaScript
rendering. It's faster and more resource-efficient than Playwright, and
exposes the same page interface so the workflow does not care which one
it is driving.
"""

import asyncio
import time
from typing import Optional, Dict, Sequence
from bs4 import BeautifulSoup
import httpx
import logging

from ..base import NavigationError, SelectorTimeoutError
from .base import BrowserSession, PageSession

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'Accept-Encoding': 'gzip, deflate',  # Some sites have issues with brotli
}


class StaticPage(PageSession):
    """A fetched HTML document behaving like a browser page."""

    def __init__(self, browser: 'StaticBrowser'):
        self._browser = browser
        self._html = ''
        self._url: Optional[str] = None

    async def goto(self, url: str, timeout: float) -> None:
        logger.debug(f"StaticPage fetching: {url}")
        await self._browser._wait_for_rate_limit()
        client = await self._browser._get_client()

        try:
            response = await client.get(url, timeout=timeout)
        except httpx.HTTPError as e:
            raise NavigationError(url, str(e) or type(e).__name__) from e

        # Some sites return an error status but still have valid content
        if response.status_code >= 400:
            if len(response.text) > 1000 and '<html' in response.text.lower():
                logger.warning(f"Got status {response.status_code} but response has content, proceeding")
            else:
                raise NavigationError(url, f"HTTP {response.status_code}")

        self._html = response.text
        self._url = str(response.url)

    async def wait_for(self, selectors: Sequence[str], timeout: float) -> None:
        # Nothing renders after the fetch, so the answer is immediate
        soup = BeautifulSoup(self._html, "html.parser")
        for selector in selectors:
            if soup.select_one(selector) is not None:
                return
        raise SelectorTimeoutError(', '.join(selectors), timeout)

    async def content(self) -> str:
        return self._html

    async def close(self) -> None:
        self._html = ''


class StaticBrowser(BrowserSession):
    """
    Plain HTTP "browser".

    Uses a single httpx.AsyncClient with connection pooling for every page.
    """

    def __init__(
        self,
        rate_limit: float = 0.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the static browser.

        Args:
            rate_limit: Seconds to wait between requests
            headers: Custom HTTP headers
            transport: Optional httpx transport (used by tests)
        """
        self.rate_limit = rate_limit
        self.headers = headers or dict(DEFAULT_HEADERS)
        self._transport = transport
        self._last_request_time = 0.0
        self._client: Optional[httpx.AsyncClient] = None
        self._lock = asyncio.Lock()

    async def _wait_for_rate_limit(self):
        """Wait to respect rate limit."""
        async with self._lock:
            elapsed = time.time() - self._last_request_time
            if elapsed < self.rate_limit:
                await asyncio.sleep(self.rate_limit - elapsed)
            self._last_request_time = time.time()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create reusable HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                headers=self.headers,
                transport=self._transport,
                limits=httpx.Limits(
                    max_keepalive_connections=5,
                    max_connections=10,
                    keepalive_expiry=30.0
                )
            )
        return self._client

    async def new_page(self) -> PageSession:
        return StaticPage(self)

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

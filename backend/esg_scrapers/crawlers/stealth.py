"""
Playwright browser for JavaScript-rendered sites and sites with bot detection.

With stealth enabled the context gets realistic browser fingerprints,
proper headers and an init script hiding automation indicators.
"""

import asyncio
from typing import Optional, Dict, Any, Sequence
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)
import logging

from ..base import BrowserLaunchError, NavigationError, SelectorTimeoutError
from .base import BrowserSession, PageSession

logger = logging.getLogger(__name__)

CLEANUP_TIMEOUT = 2.0  # seconds per cleanup operation

DEFAULT_LAUNCH_ARGS = [
    '--disable-blink-features=AutomationControlled',
    '--disable-dev-shm-usage',
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-gpu',
]

STEALTH_CONTEXT_OPTIONS = {
    'viewport': {'width': 1920, 'height': 1080},
    'user_agent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'locale': 'en-US',
    'ignore_https_errors': True,
    'extra_http_headers': {
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.9',
        'DNT': '1',
        'Upgrade-Insecure-Requests': '1',
    },
}

STEALTH_INIT_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });

    // Override plugins
    Object.defineProperty(navigator, 'plugins', {
        get: () => [1, 2, 3, 4, 5]
    });

    // Override languages
    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-US', 'en']
    });

    // Override permissions
    const originalQuery = window.navigator.permissions.query;
    window.navigator.permissions.query = (parameters) => (
        parameters.name === 'notifications' ?
            Promise.resolve({ state: Notification.permission }) :
            originalQuery(parameters)
    );
"""


def _ms(seconds: float) -> int:
    return int(seconds * 1000)


class PlaywrightPage(PageSession):
    """Wrapper around a Playwright Page."""

    def __init__(self, page: Page):
        self._page = page

    async def goto(self, url: str, timeout: float) -> None:
        try:
            response = await self._page.goto(
                url,
                wait_until='domcontentloaded',
                timeout=_ms(timeout)
            )
        except PlaywrightTimeoutError as e:
            raise NavigationError(url, f"timed out after {timeout:.0f}s") from e
        except PlaywrightError as e:
            raise NavigationError(url, str(e)) from e

        if response and response.status >= 400:
            raise NavigationError(url, f"HTTP {response.status}")

    async def wait_for(self, selectors: Sequence[str], timeout: float) -> None:
        selector = ', '.join(selectors)
        try:
            await self._page.wait_for_selector(selector, state='attached', timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            raise SelectorTimeoutError(selector, timeout) from e
        except PlaywrightError as e:
            raise NavigationError(self._page.url, str(e)) from e

    async def content(self) -> str:
        try:
            return await self._page.content()
        except PlaywrightError as e:
            raise NavigationError(self._page.url, str(e)) from e

    async def click(self, selector: str, timeout: float = 5.0) -> bool:
        try:
            locator = self._page.locator(selector).first
            if await locator.count() == 0:
                return False
            await locator.click(timeout=_ms(timeout))
            # Give the page a moment to load what the click requested
            await asyncio.sleep(2.0)
            return True
        except PlaywrightError as e:
            logger.debug(f"Click on {selector} failed: {e}")
            return False

    async def scroll_to_bottom(self, max_seconds: float = 30.0) -> None:
        try:
            await self._scroll(max_seconds)
        except PlaywrightError as e:
            logger.debug(f"Auto-scroll stopped: {e}")

    async def _scroll(self, max_seconds: float) -> None:
        loop = asyncio.get_running_loop()
        start = loop.time()
        last_height = await self._page.evaluate('document.body.scrollHeight')
        same_height_count = 0

        while loop.time() - start < max_seconds and same_height_count < 3:
            await self._page.evaluate('window.scrollBy(0, window.innerHeight)')
            await asyncio.sleep(1.0)
            new_height = await self._page.evaluate('document.body.scrollHeight')
            if new_height == last_height:
                same_height_count += 1
            else:
                same_height_count = 0
                last_height = new_height

        logger.debug(f"Auto-scroll finished after {loop.time() - start:.1f}s")

    async def close(self) -> None:
        try:
            await asyncio.wait_for(self._page.close(), timeout=CLEANUP_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Page close timed out, forcing cleanup")
        except PlaywrightError as e:
            logger.debug(f"Error closing page: {e}")


class PlaywrightBrowser(BrowserSession):
    """
    Headless Chromium driven by Playwright.

    Features (stealth mode):
    - Realistic browser fingerprint and headers
    - navigator.webdriver and friends hidden by an init script
    """

    def __init__(self, launch_options: Optional[Dict[str, Any]] = None, stealth: bool = False):
        """
        Args:
            launch_options: Keyword arguments for chromium.launch()
            stealth: Enable anti-bot evasions on the browser context
        """
        self.launch_options = dict(launch_options or {})
        self.stealth = stealth
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def start(self) -> 'PlaywrightBrowser':
        """
        Start Playwright, launch Chromium and create the browser context.

        Raises:
            BrowserLaunchError: If the browser cannot be started
        """
        try:
            self._playwright = await async_playwright().start()

            options = {'headless': True, 'args': list(DEFAULT_LAUNCH_ARGS)}
            options.update(self.launch_options)
            logger.debug("Launching Chromium browser...")
            self._browser = await self._playwright.chromium.launch(
                handle_sigint=False,
                handle_sigterm=False,
                handle_sighup=False,
                **options,
            )

            if self.stealth:
                self._context = await self._browser.new_context(**STEALTH_CONTEXT_OPTIONS)
                await self._context.add_init_script(STEALTH_INIT_SCRIPT)
            else:
                self._context = await self._browser.new_context()

        except (PlaywrightError, OSError) as e:
            logger.error(f"Failed to initialize browser: {e}")
            await self.close()
            raise BrowserLaunchError(f"Chromium could not be launched: {e}") from e

        return self

    async def new_page(self) -> PageSession:
        if self._context is None:
            raise BrowserLaunchError("Browser is not started")
        try:
            page = await self._context.new_page()
        except PlaywrightError as e:
            raise BrowserLaunchError(f"Could not open a new page: {e}") from e
        return PlaywrightPage(page)

    async def close(self) -> None:
        """Clean up browser resources with timeouts to prevent hanging."""
        if self._context:
            try:
                await asyncio.wait_for(self._context.close(), timeout=CLEANUP_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("Context close timed out, forcing cleanup")
            except PlaywrightError as e:
                logger.warning(f"Error closing context: {e}")
            self._context = None

        if self._browser:
            try:
                await asyncio.wait_for(self._browser.close(), timeout=CLEANUP_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("Browser close timed out, forcing cleanup")
            except PlaywrightError as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright:
            try:
                await asyncio.wait_for(self._playwright.stop(), timeout=CLEANUP_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("Playwright stop timed out, forcing cleanup")
            except PlaywrightError as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None

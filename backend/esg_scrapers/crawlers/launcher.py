"""
Browser acquisition strategies.

Local development uses Playwright's bundled Chromium. Serverless
deployments (AWS Lambda / Vercel) ship their own Chromium build whose
path must be supplied explicitly. The strategy is picked once at process
startup with select_launcher() and injected into every scraper.
"""

import os
from abc import ABC, abstractmethod
from typing import Optional, List
import logging

from ..base import BrowserLaunchError
from .base import BrowserSession
from .static import StaticBrowser
from .stealth import PlaywrightBrowser

logger = logging.getLogger(__name__)

# Environment variables whose presence means we run serverless
SERVERLESS_ENV_MARKERS = ('AWS_REGION', 'AWS_LAMBDA_FUNCTION_NAME', 'VERCEL')

# Args recommended for Chromium in a single-process sandbox-less container
SERVERLESS_ARGS = [
    '--disable-blink-features=AutomationControlled',
    '--disable-dev-shm-usage',
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-gpu',
    '--no-zygote',
    '--single-process',
    '--hide-scrollbars',
    '--mute-audio',
]


def is_serverless_environment() -> bool:
    """Detect a serverless runtime from its environment variables."""
    return any(os.environ.get(marker) for marker in SERVERLESS_ENV_MARKERS)


class BrowserLauncher(ABC):
    """Acquires a browser session."""

    name = 'base'

    @abstractmethod
    async def launch(self, stealth: bool = False) -> BrowserSession:
        """
        Start a browser session.

        Raises:
            BrowserLaunchError: If no compatible browser is available
        """


class LocalChromiumLauncher(BrowserLauncher):
    """Playwright-managed Chromium (``playwright install chromium``)."""

    name = 'local'

    def __init__(self, headless: bool = True, executable_path: Optional[str] = None):
        self.headless = headless
        self.executable_path = executable_path

    async def launch(self, stealth: bool = False) -> BrowserSession:
        options = {'headless': self.headless}
        if self.executable_path:
            options['executable_path'] = self.executable_path
        browser = PlaywrightBrowser(launch_options=options, stealth=stealth)
        return await browser.start()


class ServerlessChromiumLauncher(BrowserLauncher):
    """Chromium binary shipped with a serverless deployment."""

    name = 'serverless'

    def __init__(self, executable_path: Optional[str], args: Optional[List[str]] = None):
        self.executable_path = executable_path
        self.args = list(args or SERVERLESS_ARGS)

    def _validate(self) -> str:
        path = (self.executable_path or '').strip()
        if not path:
            raise BrowserLaunchError(
                "Missing Chromium executable path for serverless environment. "
                "Set CHROMIUM_EXECUTABLE_PATH."
            )
        if not os.path.exists(path):
            raise BrowserLaunchError(f"Chromium executable not found at {path}")
        return path

    async def launch(self, stealth: bool = False) -> BrowserSession:
        path = self._validate()
        options = {'headless': True, 'executable_path': path, 'args': self.args}
        browser = PlaywrightBrowser(launch_options=options, stealth=stealth)
        return await browser.start()


class StaticLauncher(BrowserLauncher):
    """httpx-based fetcher for sites that need no JavaScript."""

    name = 'static'

    def __init__(self, rate_limit: float = 0.0):
        self.rate_limit = rate_limit

    async def launch(self, stealth: bool = False) -> BrowserSession:
        return StaticBrowser(rate_limit=self.rate_limit)


def select_launcher(
    serverless: Optional[bool] = None,
    executable_path: Optional[str] = None,
    headless: bool = True,
) -> BrowserLauncher:
    """
    Pick the browser strategy for this process.

    Args:
        serverless: Force serverless mode; None auto-detects from the environment
        executable_path: Chromium binary (required when serverless)
        headless: Run the local browser headless

    Returns:
        A BrowserLauncher instance
    """
    if serverless is None:
        serverless = is_serverless_environment()

    if serverless:
        logger.info(f"Using serverless Chromium launcher (executable: {executable_path})")
        return ServerlessChromiumLauncher(executable_path)

    logger.debug("Using local Chromium launcher")
    return LocalChromiumLauncher(headless=headless, executable_path=executable_path)

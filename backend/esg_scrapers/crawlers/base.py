"""
Browser collaborator interfaces.

The scrape workflow only talks to these two abstractions. A page hands
back HTML strings; no DOM handles cross this boundary.
"""

from abc import ABC, abstractmethod
from typing import Sequence


class PageSession(ABC):
    """A single open page (tab)."""

    @abstractmethod
    async def goto(self, url: str, timeout: float) -> None:
        """
        Navigate to a URL.

        Raises:
            NavigationError: On timeout, network failure or HTTP error status
        """

    @abstractmethod
    async def wait_for(self, selectors: Sequence[str], timeout: float) -> None:
        """
        Wait until any of the selectors matches.

        Raises:
            SelectorTimeoutError: If none matched within the timeout
        """

    @abstractmethod
    async def content(self) -> str:
        """Return the current page HTML."""

    async def click(self, selector: str, timeout: float = 5.0) -> bool:
        """Click an element if present. Returns True when clicked."""
        return False

    async def scroll_to_bottom(self, max_seconds: float = 30.0) -> None:
        """Scroll until the page height stops changing."""

    @abstractmethod
    async def close(self) -> None:
        """Close the page."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class BrowserSession(ABC):
    """A launched browser owning zero or more pages."""

    @abstractmethod
    async def new_page(self) -> PageSession:
        """Open an isolated page."""

    @abstractmethod
    async def close(self) -> None:
        """Close the browser and every page it owns."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

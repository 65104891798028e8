"""Browser collaborators for different site types."""

from .base import BrowserSession, PageSession
from .static import StaticBrowser
from .stealth import PlaywrightBrowser
from .launcher import (
    BrowserLauncher,
    LocalChromiumLauncher,
    ServerlessChromiumLauncher,
    StaticLauncher,
    select_launcher,
)

__all__ = [
    'BrowserSession',
    'PageSession',
    'StaticBrowser',
    'PlaywrightBrowser',
    'BrowserLauncher',
    'LocalChromiumLauncher',
    'ServerlessChromiumLauncher',
    'StaticLauncher',
    'select_launcher',
]

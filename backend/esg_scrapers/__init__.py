"""
Configurable article scraper system for ESG news.

This module provides a single data-driven scraping engine supporting:
- Static HTML sites (httpx + BeautifulSoup)
- JavaScript-rendered sites (Playwright)
- Anti-bot protected sites (Playwright with stealth patches)
"""

from .base import (
    ArticleRecord,
    DedupeKey,
    DetailPageConfig,
    FieldRule,
    MissingDatePolicy,
    ScrapeResult,
    ScraperType,
    SiteConfig,
)
from .config import SITES, get_site_config, get_enabled_sites
from .scraper import SiteScraper
from .manager import ScraperManager

__all__ = [
    'ArticleRecord',
    'DedupeKey',
    'DetailPageConfig',
    'FieldRule',
    'MissingDatePolicy',
    'ScrapeResult',
    'ScraperType',
    'SiteConfig',
    'SITES',
    'get_site_config',
    'get_enabled_sites',
    'SiteScraper',
    'ScraperManager',
]

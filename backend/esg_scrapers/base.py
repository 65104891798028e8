"""
Base classes for the configurable article scraper.

This module defines the data structures shared by the scrape workflow,
the site registry, the output sinks and the API: site configuration,
extraction rules, article records, run results and the error taxonomy.
"""

from typing import List, Dict, Mapping, Optional, Any, Tuple
from types import MappingProxyType
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime


DEFAULT_PLACEHOLDER = 'Date not found'


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for colorized logging."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    CYAN = '\033[96m'
    GRAY = '\033[90m'

    @staticmethod
    def green(text):
        return f"{Colors.GREEN}{text}{Colors.RESET}"

    @staticmethod
    def yellow(text):
        return f"{Colors.YELLOW}{text}{Colors.RESET}"

    @staticmethod
    def red(text):
        return f"{Colors.RED}{text}{Colors.RESET}"

    @staticmethod
    def cyan(text):
        return f"{Colors.CYAN}{text}{Colors.RESET}"

    @staticmethod
    def gray(text):
        return f"{Colors.GRAY}{text}{Colors.RESET}"

    @staticmethod
    def bold(text):
        return f"{Colors.BOLD}{text}{Colors.RESET}"


# ============================================================
# ERRORS
# ============================================================

class ScrapeError(Exception):
    """Base class for all scraper errors."""


class ConfigurationError(ScrapeError):
    """A SiteConfig is invalid."""


class BrowserLaunchError(ScrapeError):
    """No usable browser could be started. Aborts the run."""


class NavigationError(ScrapeError):
    """Navigation to a page failed or timed out."""

    def __init__(self, url: str, reason: str = ''):
        self.url = url
        self.reason = reason
        message = f"Navigation to {url} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SelectorTimeoutError(ScrapeError):
    """A selector did not appear before its timeout."""

    def __init__(self, selector: str, timeout: float):
        self.selector = selector
        self.timeout = timeout
        super().__init__(f"Selector '{selector}' not found within {timeout:.0f}s")


class ExtractionError(ScrapeError):
    """A candidate is missing a required field."""

    def __init__(self, field_name: str, detail: str = ''):
        self.field_name = field_name
        super().__init__(f"Missing required field '{field_name}'{': ' + detail if detail else ''}")


# ============================================================
# CONFIGURATION TYPES
# ============================================================

class ScraperType(Enum):
    """Types of scrapers based on site requirements."""
    STATIC = "static"           # httpx + BeautifulSoup (fast)
    JAVASCRIPT = "javascript"   # Playwright (JS rendering)
    STEALTH = "stealth"         # Playwright with evasion scripts


class DedupeKey(Enum):
    """Which field(s) identify an article for deduplication."""
    URL = "url"
    TITLE = "title"
    TITLE_URL = "title+url"


class MissingDatePolicy(Enum):
    """What to do with a record whose detail page could not be read."""
    DROP = "drop"                # paywalled / undated articles are skipped
    PLACEHOLDER = "placeholder"  # keep the record with a sentinel date


@dataclass(frozen=True)
class FieldRule:
    """
    How to extract one field from a listing item or detail page.

    selector=None means the element itself. With attribute=None the
    element's text is used.
    """
    selector: Optional[str] = None
    attribute: Optional[str] = None
    regex: Optional[str] = None
    default: Optional[str] = None


@dataclass(frozen=True)
class DetailPageConfig:
    """Fields only available on each article's own page."""
    wait_selector: str
    fields: Mapping[str, FieldRule] = field(hash=False)
    policy: MissingDatePolicy = MissingDatePolicy.PLACEHOLDER
    placeholder: str = DEFAULT_PLACEHOLDER
    wait_timeout: float = 10.0
    required_field: str = 'date'

    def __post_init__(self):
        object.__setattr__(self, 'fields', MappingProxyType(dict(self.fields)))


REQUIRED_FIELDS = ('title', 'url')


@dataclass(frozen=True)
class SiteConfig:
    """Configuration for a scraping source."""
    key: str                                # Registry identifier (e.g., 'carbonbrief_policy')
    name: str                               # Full display name
    listing_url: str                        # Listing page URL
    listing_item_selector: Tuple[str, ...]  # Selectors for listing items
    fields: Mapping[str, FieldRule] = field(hash=False)  # field name -> extraction rule
    detail_page: Optional[DetailPageConfig] = None
    result_limit: int = 10
    candidate_limit: Optional[int] = None   # Candidates kept for enrichment (defaults to result_limit)
    dedupe_key: DedupeKey = DedupeKey.URL
    base_url: Optional[str] = None          # For resolving relative links (defaults to listing_url)
    fallback_listing_urls: Tuple[str, ...] = ()
    scraper_type: ScraperType = ScraperType.JAVASCRIPT
    navigation_timeout: float = 60.0
    listing_wait_timeout: float = 15.0
    scroll_to_bottom: bool = False
    load_more_selector: Optional[str] = None
    load_more_clicks: int = 1
    consent_selector: Optional[str] = None
    skip_hidden: bool = False
    blocked_titles: Tuple[str, ...] = ('Just a moment...',)
    output_name: Optional[str] = None
    category: str = 'news'
    enabled: bool = True

    def __post_init__(self):
        # Accept a single selector string for convenience
        if isinstance(self.listing_item_selector, str):
            object.__setattr__(self, 'listing_item_selector', (self.listing_item_selector,))
        if isinstance(self.fallback_listing_urls, str):
            object.__setattr__(self, 'fallback_listing_urls', (self.fallback_listing_urls,))
        object.__setattr__(self, 'fields', MappingProxyType(dict(self.fields)))

        if not self.listing_url:
            raise ConfigurationError(f"{self.key}: listing_url is required")
        if not self.listing_item_selector or not all(self.listing_item_selector):
            raise ConfigurationError(f"{self.key}: listing_item_selector is required")
        for name in REQUIRED_FIELDS:
            if name not in self.fields:
                raise ConfigurationError(f"{self.key}: missing '{name}' field rule")
        if self.result_limit < 1:
            raise ConfigurationError(f"{self.key}: result_limit must be at least 1")
        if self.candidate_limit is not None and self.candidate_limit < self.result_limit:
            raise ConfigurationError(f"{self.key}: candidate_limit must be >= result_limit")

    @property
    def effective_candidate_limit(self) -> int:
        return self.candidate_limit or self.result_limit

    @property
    def effective_base_url(self) -> str:
        return self.base_url or self.listing_url

    @property
    def file_stem(self) -> str:
        return self.output_name or self.key


# ============================================================
# RECORDS AND RESULTS
# ============================================================

@dataclass(frozen=True)
class ArticleRecord:
    """A single article as emitted by the workflow."""
    title: str
    url: str
    date: Optional[str] = None
    summary: Optional[str] = None

    def dedupe_key(self, key: DedupeKey) -> str:
        if key == DedupeKey.TITLE:
            return self.title
        if key == DedupeKey.TITLE_URL:
            return f"{self.title}||{self.url}"
        return self.url

    def to_dict(self) -> Dict[str, Any]:
        data = {'title': self.title, 'url': self.url, 'date': self.date}
        if self.summary is not None:
            data['summary'] = self.summary
        return data


@dataclass
class ScrapeResult:
    """Result of a scraping run for one site."""
    site: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    articles: List[ArticleRecord] = field(default_factory=list)
    candidates: int = 0
    dropped: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def total(self) -> int:
        return len(self.articles)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at and self.started_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict:
        return {
            'site': self.site,
            'started_at': self.started_at.isoformat(),
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'duration_seconds': self.duration_seconds,
            'total': self.total,
            'candidates': self.candidates,
            'dropped': self.dropped,
            'error': self.error,
            'success': self.success,
            'articles': [a.to_dict() for a in self.articles],
        }

"""
Data normalization utilities for scrapers.

These functions standardize scraped strings and URLs into consistent formats.
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlparse


def clean_text(text: Optional[str]) -> Optional[str]:
    """
    Collapse whitespace and strip.

    Examples:
        "  Climate\\n   policy  " -> "Climate policy"
        "   " -> None
    """
    if text is None:
        return None
    text = re.sub(r'\s+', ' ', text).strip()
    return text or None


def is_absolute_url(url: Optional[str]) -> bool:
    """True for http(s) URLs with a host."""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def resolve_url(href: Optional[str], base_url: str) -> Optional[str]:
    """
    Resolve a possibly relative link against the page URL.

    Examples:
        ("/news/a", "https://example.com/list") -> "https://example.com/news/a"
        ("https://other.org/x", ...) -> "https://other.org/x"
        ("javascript:void(0)", ...) -> None
        ("#top", ...) -> None
    """
    href = clean_text(href)
    if not href or href.startswith('#'):
        return None
    if href.lower().startswith(('javascript:', 'mailto:', 'tel:')):
        return None
    url = urljoin(base_url, href)
    # Drop fragments so the same article is not seen twice
    url = url.split('#', 1)[0]
    return url if is_absolute_url(url) else None

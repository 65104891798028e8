"""Shared utilities for scrapers."""

from .normalizers import (
    clean_text,
    is_absolute_url,
    resolve_url,
)
from .extractors import (
    parse_html,
    apply_rule,
    extract_fields,
    is_hidden,
    find_listing_items,
    build_candidate,
)

__all__ = [
    'clean_text',
    'is_absolute_url',
    'resolve_url',
    'parse_html',
    'apply_rule',
    'extract_fields',
    'is_hidden',
    'find_listing_items',
    'build_candidate',
]

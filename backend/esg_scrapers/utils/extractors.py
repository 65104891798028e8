"""
Data extraction utilities for scrapers.

These functions apply FieldRule definitions to BeautifulSoup elements and
turn listing items into candidate records.
"""

import re
import logging
from typing import Optional, List, Dict, Sequence, Union
from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from ..base import FieldRule, ArticleRecord, ExtractionError, REQUIRED_FIELDS
from .normalizers import clean_text, resolve_url

logger = logging.getLogger(__name__)

HIDDEN_STYLE = re.compile(r'(display\s*:\s*none|visibility\s*:\s*hidden)', re.IGNORECASE)


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML snapshot."""
    return BeautifulSoup(html, 'html.parser')


def apply_rule(element: Union[Tag, BeautifulSoup], rule: FieldRule) -> Optional[str]:
    """
    Extract one value using a FieldRule.

    Args:
        element: Listing item or whole document
        rule: Extraction rule

    Returns:
        Cleaned string, the rule default, or None
    """
    value = None
    try:
        target = element.select_one(rule.selector) if rule.selector else element
        if target is not None:
            if rule.attribute:
                raw = target.get(rule.attribute)
                if isinstance(raw, list):  # class and friends
                    raw = ' '.join(raw)
            else:
                raw = target.get_text(' ')
            value = clean_text(raw)

        if value and rule.regex:
            match = re.search(rule.regex, value)
            if match:
                value = clean_text(match.group(1) if match.groups() else match.group(0))
            else:
                value = None
    except (SelectorSyntaxError, re.error) as e:
        # Bad selector or pattern: treat the field as missing
        logger.debug(f"Rule {rule} failed: {e}")
        value = None

    return value or rule.default


def extract_fields(element: Union[Tag, BeautifulSoup], rules: Dict[str, FieldRule]) -> Dict[str, Optional[str]]:
    """Apply every rule to an element."""
    return {name: apply_rule(element, rule) for name, rule in rules.items()}


def is_hidden(element: Tag) -> bool:
    """
    Detect items hidden with markup.

    Layout-based visibility (zero size, CSS classes) is not visible in an
    HTML snapshot; only the hidden attribute and inline styles are checked.
    """
    for node in [element, *element.parents]:
        if not isinstance(node, Tag):
            continue
        if node.has_attr('hidden') or node.get('aria-hidden') == 'true':
            return True
        style = node.get('style')
        if style and HIDDEN_STYLE.search(style):
            return True
    return False


def find_listing_items(soup: BeautifulSoup, selectors: Sequence[str], skip_hidden: bool = False) -> List[Tag]:
    """
    Gather listing item nodes.

    Nodes are collected selector by selector, each in DOM order. A node
    matched by more than one selector is returned once.
    """
    items: List[Tag] = []
    seen_ids = set()
    for selector in selectors:
        try:
            matches = soup.select(selector)
        except SelectorSyntaxError as e:
            logger.warning(f"Invalid listing selector '{selector}': {e}")
            continue
        for node in matches:
            if id(node) in seen_ids:
                continue
            seen_ids.add(id(node))
            if skip_hidden and is_hidden(node):
                continue
            items.append(node)
    return items


def build_candidate(values: Dict[str, Optional[str]], base_url: str) -> ArticleRecord:
    """
    Turn extracted values into an ArticleRecord.

    Raises:
        ExtractionError: If title or url is missing or the url is unusable
    """
    for name in REQUIRED_FIELDS:
        if not values.get(name):
            raise ExtractionError(name)

    url = resolve_url(values['url'], base_url)
    if not url:
        raise ExtractionError('url', f"not a usable link: {values['url']!r}")

    return ArticleRecord(
        title=values['title'],
        url=url,
        date=values.get('date'),
        summary=values.get('summary'),
    )

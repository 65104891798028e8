"""
Site configurations for ESG news and regulatory sources.

Each site has a SiteConfig that defines:
- Listing page URL(s) and item selectors
- Field extraction rules for listing items and detail pages
- Scraper type (static, javascript, stealth)
- Limits, dedup key and missing-date policy
"""

from .base import (
    SiteConfig,
    ScraperType,
    FieldRule,
    DetailPageConfig,
    DedupeKey,
    MissingDatePolicy,
)


def _text(selector: str, **kwargs) -> FieldRule:
    return FieldRule(selector=selector, **kwargs)


def _attr(selector: str, attribute: str, **kwargs) -> FieldRule:
    return FieldRule(selector=selector, attribute=attribute, **kwargs)


# ============================================================
# SITE CONFIGURATIONS
# ============================================================

_CONFIGS = [
    # ========== NEWS MEDIA ==========

    SiteConfig(
        key='carbonbrief_policy',
        name='Carbon Brief - Policy',
        listing_url='https://www.carbonbrief.org/policy/',
        listing_item_selector=(
            'div.col-xs-12.col-sm-7',
            'div.content',
            'div.content.justify-content-start',
        ),
        fields={
            'title': _text('p.text-header-xxl.title, p.text-header-s.line-clamp'),
            'url': _attr('p.text-header-xxl.title a, p.text-header-s.line-clamp a', 'href'),
            'date': _text('div.meta-info p.text-tag-meta', default='Date not found'),
        },
        output_name='carbonbrief_policy',
    ),

    SiteConfig(
        key='al_monitor',
        name='Al-Monitor - Environment and Nature',
        listing_url='https://www.al-monitor.com/contents/trending-topics/environment-and-nature',
        listing_item_selector='div.card__heading',
        fields={
            'title': _text('a.heading__link'),
            'url': _attr('a.heading__link', 'href'),
        },
        detail_page=DetailPageConfig(
            wait_selector='div.node__author_data div.node__dates',
            fields={'date': _text('div.node__author_data div.node__dates')},
            policy=MissingDatePolicy.DROP,
            wait_timeout=5.0,
        ),
        base_url='https://www.al-monitor.com',
        listing_wait_timeout=10.0,
    ),

    SiteConfig(
        key='ecowatch_policy',
        name='EcoWatch - Policy',
        listing_url='https://www.ecowatch.com/policy/',
        listing_item_selector='div.home-category-posts__list-item',
        fields={
            'title': _text('h3'),
            'url': _attr('a', 'href'),
            'date': _attr('time', 'datetime'),
        },
        listing_wait_timeout=10.0,
    ),

    SiteConfig(
        key='wef_stories',
        name='World Economic Forum - Sustainable Development',
        listing_url='https://www.weforum.org/stories/sustainable-development/',
        listing_item_selector='div:has(> a.chakra-heading)',
        fields={
            'title': _text('a.chakra-heading'),
            'url': _attr('a.chakra-heading', 'href'),
            'date': _text('time', default='Date not found'),
        },
        dedupe_key=DedupeKey.TITLE_URL,
        base_url='https://www.weforum.org',
        output_name='wef',
    ),

    SiteConfig(
        key='scmp_esg',
        name='South China Morning Post - ESG',
        listing_url='https://www.scmp.com/topics/environmental-social-and-corporate-governance-esg',
        listing_item_selector=(
            'div.e102obc92.e1daqvjd0.css-1oukeou.e2fukww19',
            'div.e10l40di1.e1daqvjd0.css-grxlrd.efy545l13',
            'div.eimrqvo5.e1daqvjd0.css-yg8c0h.efy545l13',
            'div.e10l40di2.e1daqvjd0.css-g1onk.eqs07hl11',
        ),
        fields={
            'title': _text('span[data-qa="ContentHeadline-Headline"]'),
            'url': _attr('a[data-qa="BaseLink-renderAnchor-StyledAnchor"]', 'href'),
            'date': _attr(
                'time[data-qa="ContentActionBar-handleRenderDisplayDateTime-time"]',
                'datetime',
                default='Unknown',
            ),
        },
        dedupe_key=DedupeKey.TITLE_URL,
        base_url='https://www.scmp.com',
        scroll_to_bottom=True,
    ),

    SiteConfig(
        key='green_guardian',
        name='Mail & Guardian - The Green Guardian',
        listing_url='https://mg.co.za/section/the-green-guardian/',
        listing_item_selector=('div.main-archive-meta', 'div.col-12', 'div.col-8.padded'),
        fields={
            'title': _text('h1 a, h3 a'),
            'url': _attr('h1 a, h3 a', 'href'),
        },
        detail_page=DetailPageConfig(
            wait_selector='div.meta-box-date',
            fields={'date': _text('div.meta-box-date')},
            policy=MissingDatePolicy.DROP,
            wait_timeout=5.0,
        ),
        dedupe_key=DedupeKey.TITLE_URL,
        base_url='https://mg.co.za',
        listing_wait_timeout=10.0,
    ),

    SiteConfig(
        key='gulf_business',
        name='Gulf Business - Climate',
        listing_url='https://gulfbusiness.com/section/climate/',
        listing_item_selector='div.post-title h4',
        fields={
            'title': _text('a span'),
            'url': _attr('a', 'href'),
        },
        detail_page=DetailPageConfig(
            wait_selector='div.author-and-date div.thb-post-date',
            fields={'date': _text('div.author-and-date div.thb-post-date')},
            policy=MissingDatePolicy.DROP,
            wait_timeout=7.0,
        ),
        candidate_limit=15,
        base_url='https://gulfbusiness.com',
        listing_wait_timeout=10.0,
    ),

    SiteConfig(
        key='mekong_eye',
        name='Mekong Eye - Regions',
        listing_url='https://www.mekongeye.com/category/regions',
        listing_item_selector='div.entry-container',
        fields={
            'title': _text('header.entry-header a[rel="bookmark"]'),
            'url': _attr('header.entry-header a[rel="bookmark"]', 'href'),
            'date': _attr('div.entry-meta time.entry-date.published', 'datetime'),
        },
        scraper_type=ScraperType.STATIC,
        listing_wait_timeout=30.0,
    ),

    # ========== NGOs ==========

    SiteConfig(
        key='earthjustice',
        name='Earthjustice - News',
        listing_url='https://earthjustice.org/news',
        listing_item_selector=('.teaser__list--text', '.teaser__grid'),
        fields={
            'title': _attr('h3.h3_type--editorial a', 'title'),
            'url': _attr('h3.h3_type--editorial a', 'href'),
            'date': _text('.teaser__list--meta span.teaser__list--date'),
        },
        fallback_listing_urls=('https://earthjustice.org/library?_type=press&_library_sort=sort_by_newest',),
        listing_wait_timeout=10.0,
        category='ngo',
    ),

    SiteConfig(
        key='eia',
        name='Environmental Investigation Agency - News',
        listing_url='https://eia-international.org/news/',
        listing_item_selector='div.item-body',
        fields={
            'title': _text('header.item-header a'),
            'url': _attr('header.item-header a', 'href'),
            'date': _attr('span.metalabel time', 'datetime'),
        },
        scraper_type=ScraperType.STATIC,
        listing_wait_timeout=10.0,
        category='ngo',
    ),

    SiteConfig(
        key='iisd_enb',
        name='IISD Earth Negotiations Bulletin',
        listing_url='https://enb.iisd.org/archives',
        listing_item_selector='div.views-row',
        fields={
            'title': _text('article h3 a'),
            'url': _attr('article h3 a', 'href'),
            'date': _text('article small.c-list-item__meta span.c-list-item__meta-date'),
        },
        scraper_type=ScraperType.STEALTH,
        category='ngo',
    ),

    # ========== REGULATORS ==========

    SiteConfig(
        key='ftc_cases',
        name='US FTC - Environmental Cases and Proceedings',
        listing_url=(
            'https://www.ftc.gov/legal-library/browse/cases-proceedings'
            '?sort_by=field_date&items_per_page=20&field_consumer_protection_topics=1408'
        ),
        listing_item_selector='div.view-content > div.views-row > article.node',
        fields={
            'title': _text('h3.node-title > a'),
            'url': _attr('h3.node-title > a', 'href'),
            'date': _attr('div.field--name-field-date time', 'datetime', default='N/A'),
        },
        base_url='https://www.ftc.gov',
        skip_hidden=True,
        category='greenwashing',
    ),

    SiteConfig(
        key='asic_newsroom',
        name='ASIC Newsroom - Sustainable Finance',
        listing_url='https://www.asic.gov.au/newsroom/search/?tag=sustainable%20finance',
        listing_item_selector='ul#nr-list li',
        fields={
            'title': _text('h3 a'),
            'url': _attr('h3 a', 'href'),
            'date': _text('p.nr-date', regex=r'^(?:Date:\s*)?(.+)$'),
        },
        base_url='https://www.asic.gov.au',
        load_more_selector='button:has-text("Load more")',
        load_more_clicks=2,
        listing_wait_timeout=30.0,
        category='disclosure',
    ),

    SiteConfig(
        key='consilium',
        name='Council of the EU - Climate Press Releases',
        listing_url=(
            'https://www.consilium.europa.eu/en/press/press-releases/'
            '?Topic=122254&Topic=122124&Topic=122161&Topic=122178'
        ),
        listing_item_selector='li.gsc-excerpt__item',
        fields={
            'title': _text('a.gsc-excerpt-item__title'),
            'url': _attr('a.gsc-excerpt-item__title', 'href'),
            'date': _text('time.gsc-date__date'),
        },
        base_url='https://www.consilium.europa.eu',
        consent_selector='#cookie-banner button[data-dismiss="cookie-banner"]',
        category='regulatory',
    ),
]

SITES = {config.key: config for config in _CONFIGS}


# ============================================================
# HELPER FUNCTIONS
# ============================================================

def get_site_config(site_key: str) -> SiteConfig:
    """
    Get configuration for a site by its key.

    Args:
        site_key: Site identifier (e.g., 'carbonbrief_policy', 'ftc_cases')

    Returns:
        SiteConfig for the site

    Raises:
        ValueError: If site_key is not found
    """
    if site_key not in SITES:
        valid_keys = ', '.join(sorted(SITES.keys()))
        raise ValueError(f"Unknown site: '{site_key}'. Valid sites: {valid_keys}")
    return SITES[site_key]


def get_sites_by_type(scraper_type: ScraperType) -> dict:
    """Get all sites of a specific scraper type."""
    return {k: v for k, v in SITES.items() if v.scraper_type == scraper_type}


def get_enabled_sites() -> dict:
    """Get all enabled sites."""
    return {k: v for k, v in SITES.items() if v.enabled}


def get_all_sites() -> dict:
    return SITES.copy()


def list_sites() -> list:
    return list(SITES.keys())


def get_site_summary() -> list:
    """Get a summary of all sites for display."""
    summary = []
    for key, config in SITES.items():
        summary.append({
            'key': key,
            'name': config.name,
            'type': config.scraper_type.value,
            'category': config.category,
            'enabled': config.enabled,
            'url': config.listing_url,
            'detail_page': config.detail_page is not None,
            'result_limit': config.result_limit,
        })
    return summary

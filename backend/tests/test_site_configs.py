"""
Tests for site configuration and the site registry.
"""

import pytest

from fakes import build_config
from esg_scrapers.base import (
    ArticleRecord,
    ConfigurationError,
    DedupeKey,
    DetailPageConfig,
    FieldRule,
    MissingDatePolicy,
    ScraperType,
)
from esg_scrapers.config import (
    SITES,
    get_all_sites,
    get_enabled_sites,
    get_site_config,
    get_site_summary,
    get_sites_by_type,
    list_sites,
)


class TestSiteConfig:
    """Test SiteConfig validation and defaults."""

    def test_defaults(self):
        config = build_config()

        assert config.result_limit == 10
        assert config.effective_candidate_limit == 10
        assert config.dedupe_key == DedupeKey.URL
        assert config.scraper_type == ScraperType.JAVASCRIPT
        assert config.effective_base_url == config.listing_url
        assert config.file_stem == "example_news"

    def test_single_selector_becomes_tuple(self):
        config = build_config(listing_item_selector="li.item", fallback_listing_urls="https://e.com/2")

        assert config.listing_item_selector == ("li.item",)
        assert config.fallback_listing_urls == ("https://e.com/2",)

    def test_requires_title_and_url_rules(self):
        with pytest.raises(ConfigurationError):
            build_config(fields={"title": FieldRule(selector="h3")})

    def test_requires_listing_selector(self):
        with pytest.raises(ConfigurationError):
            build_config(listing_item_selector=())

    def test_requires_listing_url(self):
        with pytest.raises(ConfigurationError):
            build_config(listing_url="")

    def test_result_limit_positive(self):
        with pytest.raises(ConfigurationError):
            build_config(result_limit=0)

    def test_candidate_limit_not_below_result_limit(self):
        with pytest.raises(ConfigurationError):
            build_config(result_limit=10, candidate_limit=5)

    def test_output_name_overrides_file_stem(self):
        assert build_config(output_name="wef").file_stem == "wef"

    def test_field_rules_are_read_only(self):
        config = build_config()

        with pytest.raises(TypeError):
            config.fields["title"] = FieldRule(selector="h2")

    def test_field_rules_copied_from_input(self):
        fields = dict(build_config().fields)
        config = build_config(fields=fields)

        fields["title"] = FieldRule(selector="h2")

        assert config.fields["title"].selector == "h3"

    def test_configs_are_hashable(self):
        config = build_config(detail_page=DetailPageConfig(
            wait_selector="span.published",
            fields={"date": FieldRule(selector="span.published")},
        ))

        assert hash(config) == hash(build_config(detail_page=config.detail_page))
        assert len({config, config}) == 1


class TestArticleRecord:
    """Test record identity and serialization."""

    def test_dedupe_keys(self):
        record = ArticleRecord(title="Story", url="https://e.com/s")

        assert record.dedupe_key(DedupeKey.URL) == "https://e.com/s"
        assert record.dedupe_key(DedupeKey.TITLE) == "Story"
        assert record.dedupe_key(DedupeKey.TITLE_URL) == "Story||https://e.com/s"

    def test_to_dict_omits_missing_summary(self):
        assert ArticleRecord("T", "https://e.com/t").to_dict() == {"title": "T", "url": "https://e.com/t", "date": None}


class TestSiteRegistry:
    """Test the configured sites."""

    def test_registry_keys_match_configs(self):
        for key, config in SITES.items():
            assert config.key == key

    def test_all_listing_urls_absolute(self):
        for config in SITES.values():
            assert config.listing_url.startswith("https://")
            for url in config.fallback_listing_urls:
                assert url.startswith("https://")

    def test_detail_sites_drop_undated_articles(self):
        """Al-Monitor, Green Guardian and Gulf Business skip paywalled articles."""
        for key in ("al_monitor", "green_guardian", "gulf_business"):
            detail = SITES[key].detail_page
            assert detail is not None
            assert detail.policy == MissingDatePolicy.DROP

    def test_gulf_business_collects_extra_candidates(self):
        config = get_site_config("gulf_business")

        assert config.result_limit == 10
        assert config.effective_candidate_limit == 15

    def test_earthjustice_has_fallback_page(self):
        assert get_site_config("earthjustice").fallback_listing_urls

    def test_get_site_config_unknown(self):
        with pytest.raises(ValueError) as exc_info:
            get_site_config("does_not_exist")

        assert "carbonbrief_policy" in str(exc_info.value)

    def test_get_sites_by_type(self):
        static = get_sites_by_type(ScraperType.STATIC)

        assert "eia" in static
        assert all(c.scraper_type == ScraperType.STATIC for c in static.values())

    def test_enabled_and_all_sites(self):
        assert set(get_enabled_sites()) <= set(get_all_sites())
        assert list_sites() == list(SITES.keys())

    def test_get_all_sites_returns_copy(self):
        sites = get_all_sites()
        sites.pop("eia")

        assert "eia" in SITES

    def test_site_summary(self):
        summary = get_site_summary()

        assert len(summary) == len(SITES)
        entry = next(s for s in summary if s["key"] == "al_monitor")
        assert entry["detail_page"] is True
        assert entry["type"] == "javascript"
        assert entry["url"].startswith("https://www.al-monitor.com")

"""
Tests for field extraction and normalization helpers.
"""

import pytest

from esg_scrapers.base import ExtractionError, FieldRule
from esg_scrapers.utils.extractors import (
    apply_rule,
    build_candidate,
    extract_fields,
    find_listing_items,
    is_hidden,
    parse_html,
)
from esg_scrapers.utils.normalizers import clean_text, is_absolute_url, resolve_url


ITEM_HTML = """
<div class="card">
  <h3 class="title">  Climate   disclosure
      rules tightened </h3>
  <a class="link" href="/news/climate-rules" title="Climate disclosure rules">Read</a>
  <p class="nr-date">Date: 12 March 2024</p>
  <time datetime="2024-03-12T09:00:00Z">12 Mar</time>
</div>
"""


@pytest.fixture
def item():
    return parse_html(ITEM_HTML).select_one("div.card")


class TestCleanText:
    """Test whitespace normalization."""

    def test_collapses_whitespace(self):
        assert clean_text("  Climate\n   policy  ") == "Climate policy"

    def test_blank_is_none(self):
        assert clean_text("   ") is None
        assert clean_text(None) is None


class TestResolveUrl:
    """Test link resolution."""

    def test_relative_link(self):
        assert resolve_url("/news/a", "https://example.com/list/") == "https://example.com/news/a"

    def test_absolute_link_unchanged(self):
        assert resolve_url("https://other.org/x", "https://example.com/") == "https://other.org/x"

    def test_fragment_removed(self):
        assert resolve_url("/a#comments", "https://example.com/") == "https://example.com/a"

    @pytest.mark.parametrize("href", ["#top", "javascript:void(0)", "mailto:press@example.com", "", None])
    def test_unusable_links(self, href):
        assert resolve_url(href, "https://example.com/") is None

    def test_is_absolute_url(self):
        assert is_absolute_url("https://example.com/a") is True
        assert is_absolute_url("/a") is False
        assert is_absolute_url("ftp://example.com/a") is False


class TestApplyRule:
    """Test single-field extraction."""

    def test_text_is_cleaned(self, item):
        assert apply_rule(item, FieldRule(selector="h3.title")) == "Climate disclosure rules tightened"

    def test_attribute(self, item):
        assert apply_rule(item, FieldRule(selector="a.link", attribute="href")) == "/news/climate-rules"

    def test_datetime_attribute(self, item):
        assert apply_rule(item, FieldRule(selector="time", attribute="datetime")) == "2024-03-12T09:00:00Z"

    def test_regex_capture_group(self, item):
        rule = FieldRule(selector="p.nr-date", regex=r"^(?:Date:\s*)?(.+)$")
        assert apply_rule(item, rule) == "12 March 2024"

    def test_regex_without_match_gives_default(self, item):
        rule = FieldRule(selector="p.nr-date", regex=r"\d{4}-\d{2}-\d{2}", default="Date not found")
        assert apply_rule(item, rule) == "Date not found"

    def test_missing_element_gives_default(self, item):
        assert apply_rule(item, FieldRule(selector="span.missing", default="N/A")) == "N/A"
        assert apply_rule(item, FieldRule(selector="span.missing")) is None

    def test_no_selector_uses_element_itself(self):
        link = parse_html('<a href="/x">Story</a>').select_one("a")
        assert apply_rule(link, FieldRule(attribute="href")) == "/x"
        assert apply_rule(link, FieldRule()) == "Story"

    def test_invalid_selector_treated_as_missing(self, item):
        assert apply_rule(item, FieldRule(selector="div[[bad")) is None

    def test_selector_list_picks_first_in_document(self, item):
        rule = FieldRule(selector="h1.title, h3.title")
        assert apply_rule(item, rule) == "Climate disclosure rules tightened"

    def test_extract_fields(self, item):
        values = extract_fields(item, {
            "title": FieldRule(selector="a.link", attribute="title"),
            "url": FieldRule(selector="a.link", attribute="href"),
            "summary": FieldRule(selector="p.summary"),
        })

        assert values == {
            "title": "Climate disclosure rules",
            "url": "/news/climate-rules",
            "summary": None,
        }


class TestListingItems:
    """Test listing item discovery."""

    HTML = """
    <main>
      <div class="a" id="one">1</div>
      <div class="b" id="two">2</div>
      <div class="a b" id="three">3</div>
      <div class="a" hidden id="four">4</div>
      <section style="visibility: hidden"><div class="a" id="five">5</div></section>
    </main>
    """

    def _ids(self, nodes):
        return [n["id"] for n in nodes]

    def test_nodes_matched_by_several_selectors_returned_once(self):
        soup = parse_html(self.HTML)
        nodes = find_listing_items(soup, ["div.a", "div.b"])

        assert self._ids(nodes) == ["one", "three", "four", "five", "two"]

    def test_skip_hidden(self):
        soup = parse_html(self.HTML)
        nodes = find_listing_items(soup, ["div.a"], skip_hidden=True)

        assert self._ids(nodes) == ["one", "three"]

    def test_invalid_selector_is_skipped(self):
        soup = parse_html(self.HTML)
        nodes = find_listing_items(soup, ["div[[bad", "div.b"])

        assert self._ids(nodes) == ["two", "three"]

    def test_is_hidden_aria(self):
        node = parse_html('<div aria-hidden="true"><p>x</p></div>').select_one("p")
        assert is_hidden(node) is True


class TestBuildCandidate:
    """Test candidate construction."""

    def test_builds_record_with_absolute_url(self):
        record = build_candidate(
            {"title": "Story", "url": "/a/1", "date": "2024-01-01"},
            "https://example.com/news/",
        )

        assert record.title == "Story"
        assert record.url == "https://example.com/a/1"
        assert record.date == "2024-01-01"
        assert record.summary is None

    @pytest.mark.parametrize("values", [
        {"title": None, "url": "/a"},
        {"title": "Story", "url": None},
        {"title": "Story"},
    ])
    def test_missing_required_field(self, values):
        with pytest.raises(ExtractionError):
            build_candidate(values, "https://example.com/")

    def test_unusable_url(self):
        with pytest.raises(ExtractionError) as exc_info:
            build_candidate({"title": "Story", "url": "javascript:void(0)"}, "https://example.com/")

        assert exc_info.value.field_name == "url"

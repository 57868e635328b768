# tests/test_selector_extractor.py
"""
Unit tests for the rule-driven field extractor and structured date lookup.
"""
from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from chronoclip.errors import DelegateUnavailable
from chronoclip.extractors.base import ExtractedFields, ExtractionRequest
from chronoclip.extractors.selector_extractor import (
    SelectorFieldExtractor,
    is_valid_description,
    is_valid_title,
    score_title_candidate,
)
from chronoclip.extractors.structured_time import is_event_type, jsonld_start_date, time_element_datetime
from chronoclip.models import SiteRule
from chronoclip.rules.registry import RuleRegistry
from chronoclip.types import PageMeta, SelectionContext

ARTICLE_PAGE = """
<html><head><title>Park Events</title>
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "MusicEvent", "name": "Autumn Festival",
 "startDate": "2025-10-11T15:00:00+09:00"}
</script>
</head><body>
<nav><h2 class="title">Site Navigation Header</h2></nav>
<article>
  <h1 class="event-title">Autumn Festival 2025</h1>
  <p class="description">A full day of music, food and crafts in the park.</p>
  <p class="sel">Come join us!</p>
</article>
</body></html>
"""


def _request(node, rule, url="https://example.com/e/1"):
    return ExtractionRequest(node=node, page=PageMeta(page_url=url), rule=rule, context=SelectionContext())


@pytest.fixture
def wildcard():
    return RuleRegistry().resolve_rule("example.com")


class TestValidators:
    @pytest.mark.parametrize("text, ok", [
        ("Autumn Festival", True),
        ("ab", False),
        ("Menu", False),
        ("x" * 201, False),
    ])
    def test_title(self, text, ok):
        assert is_valid_title(text) is ok

    @pytest.mark.parametrize("text, ok", [
        ("Too short", False),
        ("Long enough description.", True),
        ("y" * 1001, False),
    ])
    def test_description(self, text, ok):
        assert is_valid_description(text) is ok

    def test_configured_noise_words(self):
        assert is_valid_title("Tickets") is True
        assert is_valid_title("Tickets", ("tickets",)) is False
        assert is_valid_description("Tickets: on sale at the door", ("tickets",)) is False

    def test_h1_event_title_scores_highest(self):
        soup = BeautifulSoup('<h1 class="event-title">Autumn Festival</h1><p>Autumn Festival</p>', "html.parser")
        h1, p = soup.find("h1"), soup.find("p")
        assert score_title_candidate("Autumn Festival", h1) == 1.0
        assert score_title_candidate("Autumn Festival", p) == pytest.approx(0.6)


class TestStructuredTime:
    @pytest.mark.parametrize("t, expected", [
        ("Event", True),
        ("MusicEvent", True),
        (["Thing", "SocialEvent"], True),
        ("Organization", False),
        (None, False),
    ])
    def test_is_event_type(self, t, expected):
        assert is_event_type(t) is expected

    def test_jsonld_in_graph(self):
        html = (
            '<script type="application/ld+json">'
            '{"@graph": [{"@type": "WebPage"}, {"@type": "Event", "startDate": "2025-08-27"}]}'
            "</script>"
        )
        assert jsonld_start_date(BeautifulSoup(html, "html.parser")) == "2025-08-27"

    def test_broken_jsonld_skipped(self):
        html = (
            '<script type="application/ld+json">{oops</script>'
            '<script type="application/ld+json">[{"@type": "Event", "startDate": "2025-08-28"}]</script>'
        )
        assert jsonld_start_date(BeautifulSoup(html, "html.parser")) == "2025-08-28"

    def test_time_element_prefers_timed_value(self):
        html = '<time datetime="2025-08-27">Aug 27</time><time datetime="2025-08-27T18:00">6pm</time>'
        assert time_element_datetime(BeautifulSoup(html, "html.parser")) == "2025-08-27T18:00"

    def test_time_element_ignores_non_iso(self):
        html = '<time datetime="soon">soon</time>'
        assert time_element_datetime(BeautifulSoup(html, "html.parser")) is None


class TestSelectorFieldExtractor:
    def test_article_scope(self, wildcard):
        soup = BeautifulSoup(ARTICLE_PAGE, "html.parser")
        node = soup.find("p", class_="sel").string
        fields = SelectorFieldExtractor().extract(_request(node, wildcard))

        assert fields.title == "Autumn Festival 2025"
        assert fields.description.startswith("A full day of music")
        assert fields.date_text == "2025-10-11T15:00:00+09:00"
        assert fields.extractor == "site:general"

    def test_ignored_regions_are_skipped(self, wildcard):
        html = """
        <html><body>
        <nav><h2 class="title">Site Navigation Header</h2></nav>
        <div><h2>Real Event Title</h2><p id="s">Join us</p></div>
        </body></html>
        """
        soup = BeautifulSoup(html, "html.parser")
        fields = SelectorFieldExtractor().extract(_request(soup.find(id="s"), wildcard))
        assert fields.title == "Real Event Title"

    def test_block_time_element_beats_jsonld(self, wildcard):
        html = """
        <script type="application/ld+json">{"@type": "Event", "startDate": "2025-01-01"}</script>
        <li class="event-item"><span id="s">Open studio</span><time datetime="2025-09-05T19:00">Sep 5</time></li>
        """
        soup = BeautifulSoup(html, "html.parser")
        fields = SelectorFieldExtractor().extract(_request(soup.find(id="s"), wildcard))
        assert fields.date_text == "2025-09-05T19:00"

    def test_site_date_selector_text(self):
        rule = SiteRule(domain="example.com", selectors={"date": ".when"}, extractor_module="custom")
        soup = BeautifulSoup('<div><p id="s">hi</p><span class="when">2025年8月27日 18:00</span></div>', "html.parser")
        fields = SelectorFieldExtractor().extract(_request(soup.find(id="s"), rule))
        assert fields.date_text == "2025年8月27日 18:00"
        assert fields.title is None
        assert fields.extractor == "site:custom"

    def test_configured_noise_words_filter_titles(self, wildcard):
        html = "<div><h1>Tickets</h1><h2>Harvest Fair</h2><p id='s'>Join us</p></div>"
        soup = BeautifulSoup(html, "html.parser")
        node = soup.find(id="s")

        assert SelectorFieldExtractor().extract(_request(node, wildcard)).title == "Tickets"
        fields = SelectorFieldExtractor(noise_words=("tickets",)).extract(_request(node, wildcard))
        assert fields.title == "Harvest Fair"

    def test_nothing_found_returns_none(self):
        rule = SiteRule(domain="example.com", selectors={"title": ".missing"})
        soup = BeautifulSoup('<p id="s">hello</p>', "html.parser")
        assert SelectorFieldExtractor().extract(_request(soup.find(id="s"), rule)) is None

    def test_no_rule_returns_none(self):
        soup = BeautifulSoup('<p id="s">hello</p>', "html.parser")
        assert SelectorFieldExtractor().extract(_request(soup.find(id="s"), None)) is None

    @pytest.mark.parametrize("node", [None, "plain string", object()])
    def test_non_soup_node_is_unavailable(self, node, wildcard):
        with pytest.raises(DelegateUnavailable):
            SelectorFieldExtractor().extract(_request(node, wildcard))


class TestExtractedFields:
    def test_is_empty(self):
        assert ExtractedFields().is_empty() is True
        assert ExtractedFields(date_text="2025-08-27").is_empty() is False

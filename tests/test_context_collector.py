# tests/test_context_collector.py
"""
Unit tests for ContextCollector over BeautifulSoup documents.
"""
from __future__ import annotations

import pytest
from bs4 import BeautifulSoup, NavigableString

from chronoclip.config import ExtractionConfig
from chronoclip.context.accessor import SoupAccessor, heading_level
from chronoclip.context.collector import ContextCollector
from chronoclip.errors import ContextUnavailable

EVENT_PAGE = """
<html><body>
<div id="main">
  <section class="event card">
    <h2>Summer  Jazz Night</h2>
    <p class="lead intro extra">Doors open early for members only.</p>
    <p class="when">2025年8月27日 18:00</p>
    <p>short</p>
    <p>Tickets are available at the venue box office.</p>
  </section>
</div>
</body></html>
"""


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


@pytest.fixture
def collector():
    return ContextCollector(SoupAccessor(), ExtractionConfig(heading_max_hops=5))


class TestHeadingLevel:
    @pytest.mark.parametrize("tag, level", [("h1", 1), ("H3", 3), ("h6", 6), ("p", None), (None, None)])
    def test_levels(self, tag, level):
        assert heading_level(tag) == level


class TestCollect:
    def test_full_context_for_text_node(self, collector):
        soup = _soup(EVENT_PAGE)
        node = soup.find("p", class_="when").string
        ctx = collector.collect(node, "2025年8月27日  18:00")

        assert ctx.normalized_selection == "2025年8月27日 18:00"
        assert ctx.container_path == "div#main > section.event.card > p.when"

        assert ctx.heading is not None
        assert ctx.heading.text == "Summer Jazz Night"
        assert ctx.heading.level == 2
        assert ctx.heading.distance == 2

        assert ctx.parent.tag == "section"
        assert ctx.parent.qualifiers == ["event", "card"]
        assert ctx.parent.path == "div#main > section.event.card"
        assert "Tickets are available" in ctx.parent.text

    def test_neighbours_before_then_after(self, collector):
        soup = _soup(EVENT_PAGE)
        ctx = collector.collect(soup.find("p", class_="when"), "x")

        assert [(p.position, p.text) for p in ctx.neighbour_paragraphs] == [
            ("before", "Doors open early for members only."),
            ("before", "Summer Jazz Night"),
            ("after", "Tickets are available at the venue box office."),
        ]

    def test_qualifiers_capped_in_path(self, collector):
        soup = _soup(EVENT_PAGE)
        ctx = collector.collect(soup.find("p", class_="lead"), "x")
        assert ctx.container_path.endswith("p.lead.intro")

    def test_no_node_gives_selection_only(self, collector):
        ctx = collector.collect(None, "  Hello \n world ")
        assert ctx.normalized_selection == "Hello world"
        assert ctx.heading is None
        assert ctx.parent is None
        assert ctx.neighbour_paragraphs == []
        assert ctx.container_path == ""

    def test_node_without_accessor_raises(self):
        with pytest.raises(ContextUnavailable):
            ContextCollector(None).collect(object(), "x")

    def test_detached_text_node(self, collector):
        ctx = collector.collect(NavigableString("floating"), "floating")
        assert ctx.normalized_selection == "floating"
        assert ctx.heading is None


class TestStructuralPath:
    def test_depth_capped(self, collector):
        html = "".join(f'<div class="l{i}">' for i in range(1, 8)) + "x" + "</div>" * 7
        leaf = _soup(html).find("div", class_="l7")
        assert collector.structural_path(leaf) == "div.l3 > div.l4 > div.l5 > div.l6 > div.l7"

    def test_stops_at_first_id(self, collector):
        soup = _soup('<div id="outer"><div id="inner"><span class="a">x</span></div></div>')
        assert collector.structural_path(soup.find("span")) == "div#inner > span.a"


class TestNearestHeading:
    def test_found_through_parent(self, collector):
        soup = _soup('<div><h1>Top</h1><div class="box"><p id="s">text</p></div></div>')
        h = collector.nearest_heading(soup.find(id="s"))
        assert (h.text, h.level, h.distance) == ("Top", 1, 2)

    def test_selection_inside_heading(self, collector):
        soup = _soup("<div><h3>Live Tour</h3></div>")
        h = collector.nearest_heading(soup.find("h3"))
        assert h.distance == 0

    def test_hop_limit(self):
        html = (
            "<div><h3>Title</h3>"
            "<p>1</p><p>2</p><p>3</p><p>4</p><p>5</p>"
            '<p id="s">sel</p></div>'
        )
        soup = _soup(html)
        node = soup.find(id="s")

        short = ContextCollector(SoupAccessor(), ExtractionConfig(heading_max_hops=5))
        assert short.nearest_heading(node) is None

        wide = ContextCollector(SoupAccessor(), ExtractionConfig(heading_max_hops=7))
        h = wide.nearest_heading(node)
        assert h.text == "Title"
        assert h.distance == 6


class TestNeighbourParagraphs:
    def test_at_most_three_per_side(self, collector):
        long = "This paragraph is long enough ({})"
        html = "<div>" + "".join(f"<p>{long.format(i)}</p>" for i in range(5)) + '<p id="s">sel</p></div>'
        soup = _soup(html)
        found = collector.neighbour_paragraphs(soup.find(id="s"))
        assert [p.text for p in found] == [long.format(4), long.format(3), long.format(2)]

    def test_short_siblings_count_towards_the_walk(self, collector):
        html = (
            "<div><p>Long enough paragraph text</p>"
            "<p>tiny</p><p>tiny</p><p>tiny</p>"
            '<p id="s">sel</p></div>'
        )
        soup = _soup(html)
        assert collector.neighbour_paragraphs(soup.find(id="s")) == []

    def test_exactly_ten_chars_is_dropped(self, collector):
        soup = _soup('<div><p id="s">sel</p><p>0123456789</p><p>0123456789A</p></div>')
        found = collector.neighbour_paragraphs(soup.find(id="s"))
        assert [p.text for p in found] == ["0123456789A"]

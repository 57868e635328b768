"""
Structured date lookup for event pages.

Reads startDate from JSON-LD (Schema.org Event and subtypes) and the
datetime attribute of <time> elements. Returns the raw ISO strings; turning
them into a DateCandidate is the resolver's job.
"""
from __future__ import annotations

import json
import re
from typing import Any, List, Optional

from bs4 import BeautifulSoup, Tag

_ISO_PREFIX_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def is_event_type(t: Any) -> bool:
    """"@type": "Event" / "MusicEvent" / ["Thing", "SocialEvent"]."""
    if isinstance(t, str):
        return t.endswith("Event")
    if isinstance(t, list):
        return any(isinstance(x, str) and x.endswith("Event") for x in t)
    return False


def _events_in(data: Any) -> List[dict]:
    found: List[dict] = []
    if isinstance(data, dict):
        if is_event_type(data.get("@type")):
            found.append(data)
        graph = data.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                found.extend(_events_in(item))
    elif isinstance(data, list):
        for item in data:
            found.extend(_events_in(item))
    return found


def jsonld_start_date(soup: BeautifulSoup | Tag) -> Optional[str]:
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.get_text() or "")
        except json.JSONDecodeError:
            continue
        for event in _events_in(data):
            start = event.get("startDate")
            if isinstance(start, str) and start.strip():
                return start.strip()
    return None


def time_element_datetime(scope: BeautifulSoup | Tag) -> Optional[str]:
    """First <time datetime="YYYY-MM-DD..."> in scope, timed values preferred."""
    values = [
        (el.get("datetime") or "").strip()
        for el in scope.find_all("time", datetime=True)
    ]
    values = [v for v in values if _ISO_PREFIX_RE.match(v)]
    if not values:
        return None
    timed = [v for v in values if "T" in v]
    return (timed or values)[0]

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Sequence
from zoneinfo import ZoneInfo

from dateparser.search import search_dates

from ..config import NL_LANGUAGES, TIMEZONE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NaturalMatch:
    start: datetime
    end: Optional[datetime] = None
    has_clock_time: bool = False
    text: str = ""


class NaturalDateParser(Protocol):
    def parse(
        self,
        text: str,
        reference: datetime,
        forward_bias: bool = True,
    ) -> List[NaturalMatch]:
        ...


_MONTH = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_WEEKDAY = r"(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)"

# "Aug 27", "August 27th", "27 Aug", "3rd of March"
_MONTH_DAY_RE = re.compile(
    rf"\b{_MONTH}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?\b"
    rf"|\b\d{{1,2}}(?:st|nd|rd|th)?\s+(?:of\s+)?{_MONTH}\b",
    re.IGNORECASE,
)

# "today", "tomorrow", "next Friday", "this weekend", "Saturday", "in 3 days"
_RELATIVE_DAY_RE = re.compile(
    rf"\b(?:today|tonight|tomorrow|yesterday"
    rf"|(?:next|this|last|coming)\s+(?:{_WEEKDAY}|week|weekend|month|year)"
    rf"|{_WEEKDAY}"
    r"|in\s+\d+\s+(?:days?|weeks?|months?))\b",
    re.IGNORECASE,
)

# Parsers that read calendar text; timestamps and digit runs are left to the patterns
_PARSERS = ["relative-time", "absolute-time"]


def has_time_hint(s: str) -> bool:
    """
    Heuristic: does the raw string look like it contains time info?
    Catches:
      - "2026-01-22T15:00" (ISO 8601 with time)
      - "15:00", "6pm", "6 p.m."
      - "noon", "midnight"
      - "18時"
    """
    if not s:
        return False
    low = s.strip().lower()
    if re.search(r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}", s):
        return True
    return bool(
        re.search(r"\b\d{1,2}:\d{2}\b", low)
        or re.search(r"\b\d{1,2}\s*(?:am|pm|a\.m\.|p\.m\.)", low)
        or re.search(r"\b(?:noon|midnight)\b", low)
        or re.search(r"\d{1,2}時", low)
    )


def _carries_a_date(fragment: str) -> bool:
    """
    A month name next to a day number, or a relative day phrase.
    Lone words dateparser also reads as dates ("may", "March", "second",
    "now") and numbers without a month ("12 on the 3rd") are rejected.
    """
    s = fragment or ""
    return bool(_MONTH_DAY_RE.search(s) or _RELATIVE_DAY_RE.search(s))


class DateparserNaturalParser:
    """
    Locale-aware parsing through dateparser's search mode.
    forward_bias maps to PREFER_DATES_FROM=future, so "Aug 27" resolves to the
    next Aug 27 after the reference.
    """

    def __init__(self, languages: Sequence[str] = NL_LANGUAGES, tz_name: str = TIMEZONE) -> None:
        self.languages = list(languages)
        self.tz_name = tz_name

    def parse(
        self,
        text: str,
        reference: datetime,
        forward_bias: bool = True,
    ) -> List[NaturalMatch]:
        s = (text or "").strip()
        if not s:
            return []

        tz = ZoneInfo(self.tz_name)
        ref_local = reference.astimezone(tz) if reference.tzinfo else reference.replace(tzinfo=tz)

        settings = {
            "TIMEZONE": self.tz_name,
            "RETURN_AS_TIMEZONE_AWARE": True,
            "RELATIVE_BASE": ref_local.replace(tzinfo=None),
            "PREFER_DATES_FROM": "future" if forward_bias else "current_period",
            "PARSERS": list(_PARSERS),
        }
        found = search_dates(s, languages=self.languages or None, settings=settings) or []

        matches: List[NaturalMatch] = []
        for fragment, dt in found:
            if not _carries_a_date(fragment):
                continue
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=tz)
            matches.append(
                NaturalMatch(start=dt, end=None, has_clock_time=has_time_hint(fragment), text=fragment)
            )

        logger.debug("[dates] natural parser: %d hit(s) in %r", len(matches), s[:80])
        return matches

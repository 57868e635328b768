"""
Regex fallback patterns for date/time text.

PATTERNS is ordered by trust. The resolver tries each pattern in turn and
uses only the FIRST occurrence of the first pattern that matches anywhere in
the text, so priority never depends on where in the text a date sits.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from .utils import era_to_gregorian

_WEEKDAY = r"(?:\s*[(（][^)）]{1,6}[)）])?"


@dataclass(frozen=True)
class DateFields:
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    has_time: bool = False
    year_inferred: bool = False


@dataclass(frozen=True)
class DatePattern:
    name: str
    regex: re.Pattern[str]
    to_fields: Callable[[re.Match[str], int], Optional[DateFields]]


def _int(s: Optional[str]) -> Optional[int]:
    return int(s) if s is not None else None


# ------------------------------------------------------------
# 1) ISO: 2025-08-27, 2025-08-27T18:00, 2025-08-27 18:00
# ------------------------------------------------------------
_ISO_RE = re.compile(
    r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?:[T\s](\d{1,2}):(\d{2}))?"
)


def _iso_fields(m: re.Match[str], ref_year: int) -> DateFields:
    hour = _int(m.group(4))
    return DateFields(
        year=int(m.group(1)),
        month=int(m.group(2)),
        day=int(m.group(3)),
        hour=hour or 0,
        minute=_int(m.group(5)) or 0,
        has_time=hour is not None,
    )


# ------------------------------------------------------------
# 2) Year-qualified long form:
#    2025年8月27日(水) 18:00, 2025年10月11日 (土) 15:00 開場16:00 開始
# ------------------------------------------------------------
_YEAR_LONG_RE = re.compile(
    rf"(\d{{4}})年(\d{{1,2}})月(\d{{1,2}})日{_WEEKDAY}\s*(?:(\d{{1,2}}):(\d{{2}}))?"
)

# ------------------------------------------------------------
# 3) Year-qualified long form, no time following: 2025年8月27日(水)
# ------------------------------------------------------------
_YEAR_LONG_DATE_ONLY_RE = re.compile(
    rf"(\d{{4}})年(\d{{1,2}})月(\d{{1,2}})日{_WEEKDAY}(?!\s*\d{{1,2}}:)"
)


def _year_long_fields(m: re.Match[str], ref_year: int) -> DateFields:
    hour = _int(m.group(4)) if m.re.groups >= 5 else None
    minute = _int(m.group(5)) if m.re.groups >= 5 else None
    has_time = hour is not None and minute is not None
    return DateFields(
        year=int(m.group(1)),
        month=int(m.group(2)),
        day=int(m.group(3)),
        hour=hour if has_time else 0,
        minute=minute if has_time else 0,
        has_time=has_time,
    )


# ------------------------------------------------------------
# 4) Year omitted: 8月27日 18:00, 8月27日(水) 18時, 8月27日 18時30分
#    Not preceded by a digit or 年, so era dates (令和7年8月27日) and
#    year-qualified dates are left to their own patterns.
# ------------------------------------------------------------
_SHORT_RE = re.compile(
    rf"(?<![\d年])(\d{{1,2}})月(\d{{1,2}})日{_WEEKDAY}"
    r"(?:\s*(\d{1,2}):(\d{2})|\s*(\d{1,2})時(?:(\d{1,2})分)?)?"
)


def _short_fields(m: re.Match[str], ref_year: int) -> DateFields:
    hour = minute = None
    if m.group(3) is not None and m.group(4) is not None:
        hour, minute = int(m.group(3)), int(m.group(4))
    elif m.group(5) is not None:
        hour, minute = int(m.group(5)), _int(m.group(6)) or 0
    return DateFields(
        year=ref_year,
        month=int(m.group(1)),
        day=int(m.group(2)),
        hour=hour or 0,
        minute=minute or 0,
        has_time=hour is not None,
        year_inferred=True,
    )


# ------------------------------------------------------------
# 5) Slash: 2025/08/27 18:00, 8/27 18:00, 8/27
# ------------------------------------------------------------
_SLASH_RE = re.compile(
    r"(?<![\d/])(?:(\d{4})/)?(\d{1,2})/(\d{1,2})(?!\d)(?:\s+(\d{1,2}):(\d{2}))?"
)


def _slash_fields(m: re.Match[str], ref_year: int) -> DateFields:
    year = _int(m.group(1))
    hour = _int(m.group(4))
    return DateFields(
        year=year if year is not None else ref_year,
        month=int(m.group(2)),
        day=int(m.group(3)),
        hour=hour or 0,
        minute=_int(m.group(5)) or 0,
        has_time=hour is not None,
        year_inferred=year is None,
    )


# ------------------------------------------------------------
# 6) Era based: 令和7年8月27日, 令和元年5月1日
# ------------------------------------------------------------
_ERA_RE = re.compile(r"(令和|平成|昭和|大正)(\d{1,2}|元)年(\d{1,2})月(\d{1,2})日")


def _era_fields(m: re.Match[str], ref_year: int) -> Optional[DateFields]:
    year = era_to_gregorian(m.group(1), m.group(2))
    if year is None:
        return None
    return DateFields(year=year, month=int(m.group(3)), day=int(m.group(4)))


# ------------------------------------------------------------
# 7) Latin month names: Aug 27, 2025 6pm / August 27 2025 / Sep. 3, 2025 7:30 p.m.
#    A bare hour counts as a clock time only with minutes or a meridiem.
# ------------------------------------------------------------
_MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")

_MONTH_NAME_RE = re.compile(
    r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})"
    r"(?:,?\s+(?:at\s+)?(\d{1,2})(?::(\d{2}))?\s*(am|pm|a\.m\.|p\.m\.)?)?",
    re.IGNORECASE,
)


def _month_name_fields(m: re.Match[str], ref_year: int) -> DateFields:
    month = _MONTHS.index(m.group(1).lower()[:3]) + 1
    hour = _int(m.group(4))
    minute = _int(m.group(5))
    meridiem = (m.group(6) or "").lower().replace(".", "")

    has_time = hour is not None and (minute is not None or bool(meridiem))
    if has_time and meridiem:
        if hour == 12:
            hour = 0
        if meridiem == "pm":
            hour += 12

    return DateFields(
        year=int(m.group(3)),
        month=month,
        day=int(m.group(2)),
        hour=hour if has_time else 0,
        minute=(minute or 0) if has_time else 0,
        has_time=has_time,
    )


PATTERNS: List[DatePattern] = [
    DatePattern("pattern:iso", _ISO_RE, _iso_fields),
    DatePattern("pattern:year_long", _YEAR_LONG_RE, _year_long_fields),
    DatePattern("pattern:year_long_date_only", _YEAR_LONG_DATE_ONLY_RE, _year_long_fields),
    DatePattern("pattern:short", _SHORT_RE, _short_fields),
    DatePattern("pattern:slash", _SLASH_RE, _slash_fields),
    DatePattern("pattern:era", _ERA_RE, _era_fields),
    DatePattern("pattern:month_name", _MONTH_NAME_RE, _month_name_fields),
]

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, Optional, Union

# Year before each era's first year (令和元年 = 2019).
# Fixed table: a new era needs a new entry here, it is never guessed.
ERA_BASE_YEARS: Dict[str, int] = {
    "令和": 2018,
    "平成": 1988,
    "昭和": 1925,
    "大正": 1911,
}

FIRST_YEAR_TOKEN = "元"


def is_valid_date(year: int, month: int, day: int) -> bool:
    """
    Range check, then rebuild the date from (year, month, 1) + day offset and
    require the same triple back. Rejects e.g. 2025-02-30 (would land on 03-02).
    """
    if not (1 <= month <= 12) or not (1 <= day <= 31):
        return False
    try:
        rebuilt = date(year, month, 1) + timedelta(days=day - 1)
    except (ValueError, OverflowError):
        return False
    return (rebuilt.year, rebuilt.month, rebuilt.day) == (year, month, day)


def is_valid_time(hour: int, minute: int) -> bool:
    return 0 <= hour <= 23 and 0 <= minute <= 59


def era_to_gregorian(era: str, era_year: Union[str, int]) -> Optional[int]:
    base = ERA_BASE_YEARS.get((era or "").strip())
    if base is None:
        return None
    if isinstance(era_year, str):
        token = era_year.strip()
        if token == FIRST_YEAR_TOKEN:
            n = 1
        elif token.isdigit():
            n = int(token)
        else:
            return None
    else:
        n = int(era_year)
    if n < 1:
        return None
    return base + n


def resolve_year_for_month_day(month: int, day: int, reference: Union[date, datetime]) -> Optional[int]:
    """
    Year for a year-less month/day: the reference year, or the next one if the
    date has already passed. None if the date exists in neither year.
    """
    ref = reference.date() if isinstance(reference, datetime) else reference
    for year in (ref.year, ref.year + 1):
        if not is_valid_date(year, month, day):
            continue
        if date(year, month, day) >= ref:
            return year
    return None

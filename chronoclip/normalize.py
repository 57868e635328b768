from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Optional, Tuple

from .config import SCRIPT_RANGES

# Punctuation that survives normalization. Hyphen, slash and tilde stay so
# numeric dates ("2025-08-27", "8/27", "18:00~21:00") are still parseable.
PUNCTUATION = ".,!?()[]:：（）「」『』、。-/~〜・'&@+%#"

_WS_RE = re.compile(r"\s+")


@lru_cache(maxsize=8)
def _disallowed_re(script_ranges: Tuple[Tuple[int, int], ...]) -> re.Pattern[str]:
    ranges = "".join(f"{chr(lo)}-{chr(hi)}" for lo, hi in script_ranges)
    return re.compile(rf"[^\w\s{ranges}{re.escape(PUNCTUATION)}]")


def normalize_text(
    text: Any,
    script_ranges: Tuple[Tuple[int, int], ...] = SCRIPT_RANGES,
) -> str:
    """
    Canonical form of a text fragment:
      1. drop characters outside the allow-list
      2. collapse whitespace runs (incl. newlines, tabs) to one space
      3. trim
    Stripping runs before collapsing so the result is a fixed point.
    """
    if not isinstance(text, str) or not text:
        return ""
    s = _disallowed_re(tuple(script_ranges)).sub("", text)
    s = _WS_RE.sub(" ", s)
    return s.strip()


def first_line(text: Optional[str]) -> str:
    for line in (text or "").splitlines():
        if line.strip():
            return line
    return ""


def truncate(text: str, limit: int, marker: str = "...") -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + marker


# ============================================================
# Title cleanup
# ============================================================

_WEEKDAY = r"\s*[(（][^)）]{1,6}[)）]"
_MARKER = r"(?:開場|開演|開始|受付|開催)"

# Most specific first: full stamps before their fragments.
_DATE_TOKEN_RES = [
    re.compile(rf"\d{{4}}年\d{{1,2}}月\d{{1,2}}日(?:{_WEEKDAY})?\s*\d{{1,2}}:\d{{2}}"),
    re.compile(rf"\d{{4}}年\d{{1,2}}月\d{{1,2}}日(?:{_WEEKDAY})?"),
    re.compile(rf"\d{{1,2}}月\d{{1,2}}日(?:{_WEEKDAY})?\s*\d{{1,2}}:\d{{2}}"),
    re.compile(rf"\d{{1,2}}月\d{{1,2}}日(?:{_WEEKDAY})?"),
    re.compile(rf"\d{{1,2}}:\d{{2}}\s*{_MARKER}"),
    re.compile(r"\d{4}-\d{1,2}-\d{1,2}(?:[T ]\d{1,2}:\d{2})?"),
    re.compile(r"\d{4}年"),
    re.compile(r"[(（][月火水木金土日][)）]"),
    re.compile(r"\d{1,2}:\d{2}"),
]


def remove_date_tokens(title: Optional[str]) -> str:
    """
    Strip date/time expressions from a title and tidy leftover separators.
    Returns the original (stripped) title if nothing meaningful remains.
    """
    original = (title or "").strip()
    if not original:
        return ""

    s = original
    for rx in _DATE_TOKEN_RES:
        s = rx.sub("", s)

    s = _WS_RE.sub(" ", s)
    s = re.sub(r"[,，]\s*", " ", s)
    s = re.sub(r"^\s*[(（\-–—/|]+\s*", "", s)
    s = re.sub(r"\s*[)）\-–—/|]+\s*$", "", s)
    s = s.strip()

    if len(s) < 2:
        return original
    return s

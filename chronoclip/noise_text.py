# chronoclip/noise_text.py
"""
Single source of truth for "is this text page chrome, not event content".

Used by:
  - builder.py   (heading title and neighbour paragraph filtering)
  - extractors   (selector hits that are only navigation labels)

Rules are deterministic:
  1. Empty or whitespace-only → noise
  2. Exact match (case-insensitive) against the configured noise words → noise
  3. Starts with a noise word followed by a separator (e.g. "Share: ...") → noise
  4. Contains only whitespace / digits / punctuation (no letters) → noise
"""
from __future__ import annotations

import re
from typing import Iterable, Optional

from .config import NOISE_WORDS

_STRUCTURAL_ONLY_RE = re.compile(r"^[\s\d\W_]*$", re.UNICODE)
_PREFIX_SEPARATORS = (":", "：", "|", "｜")


def is_noise_text(text: Optional[str], noise_words: Iterable[str] = NOISE_WORDS) -> bool:
    t = (text or "").strip()
    if not t:
        return True
    low = t.lower()
    words = [w.strip().lower() for w in noise_words if w and w.strip()]
    if low in words:
        return True
    for w in words:
        if low.startswith(w) and low[len(w):].lstrip().startswith(_PREFIX_SEPARATORS):
            return True
    if _STRUCTURAL_ONLY_RE.fullmatch(t):
        return True
    return False

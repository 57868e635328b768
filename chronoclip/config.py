from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise EnvironmentError(f"{name} must be an integer, got {raw!r}")


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(p.strip() for p in raw.split(",") if p.strip())


TIMEZONE = os.getenv("CHRONOCLIP_TIMEZONE", "Asia/Tokyo")
DEFAULT_DURATION_MINUTES = _env_int("CHRONOCLIP_DEFAULT_DURATION_MINUTES", 180)
HEADING_MAX_HOPS = _env_int("CHRONOCLIP_HEADING_MAX_HOPS", 5)

# Languages handed to dateparser for the natural-language strategy.
# Japanese is covered by the pattern fallback, so it is off by default.
NL_LANGUAGES = _env_list("CHRONOCLIP_NL_LANGUAGES", ("en",))

# Text that is structural chrome rather than event content
NOISE_WORDS = _env_list(
    "CHRONOCLIP_NOISE_WORDS",
    (
        "menu",
        "share",
        "home",
        "login",
        "sign in",
        "read more",
        "メニュー",
        "シェア",
        "ホーム",
        "ログイン",
        "もっと見る",
        "続きを読む",
    ),
)

RULE_STORE = os.getenv("CHRONOCLIP_RULE_STORE", "file").strip().lower()
RULES_FILE = os.getenv("CHRONOCLIP_RULES_FILE", "site_rules.json")

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

WORKERS = max(1, min(_env_int("CHRONOCLIP_WORKERS", 4), 32))

# (start, end) code point ranges kept by the normalizer besides letters/digits:
# Hiragana, Katakana, CJK Unified Ideographs, CJK Extension A
SCRIPT_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x3040, 0x309F),
    (0x30A0, 0x30FF),
    (0x4E00, 0x9FAF),
    (0x3400, 0x4DBF),
)


@dataclass(frozen=True)
class ExtractionConfig:
    timezone: str = TIMEZONE
    default_duration_minutes: int = DEFAULT_DURATION_MINUTES
    heading_max_hops: int = HEADING_MAX_HOPS
    noise_words: Tuple[str, ...] = NOISE_WORDS
    nl_languages: Tuple[str, ...] = NL_LANGUAGES
    script_ranges: Tuple[Tuple[int, int], ...] = field(default=SCRIPT_RANGES)


def require_supabase_env() -> Tuple[str, str]:
    """Fail fast when the supabase rule store is selected without credentials."""
    missing = []
    if not SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")
    if missing:
        raise EnvironmentError(
            f"Missing required environment variables: {', '.join(missing)}. "
            "Copy .env.example to .env and fill in your Supabase credentials, "
            "or set CHRONOCLIP_RULE_STORE=file."
        )
    return SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY  # type: ignore[return-value]

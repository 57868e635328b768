from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; chronoclip)"


@dataclass
class HttpResult:
    url: str
    status_code: int
    text: str


def http_get(url: str, *, timeout_s: int = 30) -> HttpResult:
    """Plain GET for the CLI. Non-2xx responses raise requests.HTTPError."""
    logger.info("[http] GET %s", url)
    r = requests.get(url, timeout=timeout_s, headers={"User-Agent": USER_AGENT})
    r.raise_for_status()
    return HttpResult(url=r.url, status_code=r.status_code, text=r.text)

"""
Persistence for user-defined site rules.

A store holds rules WITHOUT their origin (everything in a store is a user
rule). Both implementations raise RuleStoreUnavailable on I/O failure and
never return partial data.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..config import require_supabase_env
from ..errors import RuleStoreUnavailable

logger = logging.getLogger(__name__)


class RuleStore(Protocol):
    def get(self) -> List[Dict[str, Any]]:
        ...

    def put(self, rules: List[Dict[str, Any]]) -> None:
        ...


class JsonFileRuleStore:
    """Rules as a JSON list in a local file. A missing file reads as no rules."""

    def __init__(self, path: str) -> None:
        self.path = path

    def get(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RuleStoreUnavailable(f"cannot read {self.path}: {e}") from e
        if not isinstance(data, list):
            raise RuleStoreUnavailable(f"{self.path}: expected a JSON list, got {type(data).__name__}")
        return [r for r in data if isinstance(r, dict)]

    def put(self, rules: List[Dict[str, Any]]) -> None:
        tmp = f"{self.path}.tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(rules, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            raise RuleStoreUnavailable(f"cannot write {self.path}: {e}") from e


def get_supabase() -> Client:
    url, key = require_supabase_env()
    return create_client(url, key)


class SupabaseRuleStore:
    """
    Rules in a `site_rules` table keyed by domain.
    put() upserts the given rows and deletes rows whose domain is gone.
    """

    TABLE = "site_rules"
    COLUMNS = "domain,priority,selectors,extractor_module,inherit_subdomains,enabled,id"

    def __init__(self, client: Optional[Client] = None, table: str = TABLE) -> None:
        self._client = client
        self.table = table

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def get(self) -> List[Dict[str, Any]]:
        try:
            resp = self.client.table(self.table).select(self.COLUMNS).execute()
        except (APIError, httpx.HTTPError) as e:
            raise RuleStoreUnavailable(f"supabase read failed: {e}") from e
        data = getattr(resp, "data", None) or []
        return [r for r in data if isinstance(r, dict)]

    def put(self, rules: List[Dict[str, Any]]) -> None:
        keep = {r.get("domain") for r in rules}
        try:
            existing = self.get()
            gone = sorted(
                r["domain"] for r in existing if r.get("domain") and r.get("domain") not in keep
            )
            if gone:
                self.client.table(self.table).delete().in_("domain", gone).execute()
            if rules:
                self.client.table(self.table).upsert(rules, on_conflict="domain").execute()
        except (APIError, httpx.HTTPError) as e:
            raise RuleStoreUnavailable(f"supabase write failed: {e}") from e

        logger.info("[rules] supabase store: upserted=%d deleted=%d", len(rules), len(gone))

"""
Site rule registry.

Two origin stores (builtin, user) are merged into one read-mostly view where
a user rule replaces the builtin rule for the same domain. Every mutation
builds a new immutable snapshot and swaps the reference under a writer lock,
so concurrent readers see the old view or the new one, never a mix.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlparse

from pydantic import ValidationError

from ..errors import RuleStoreUnavailable
from ..models import WILDCARD_DOMAIN, SiteRule, normalize_domain
from .builtin import builtin_rules
from .store import RuleStore

logger = logging.getLogger(__name__)

ORIGINS = ("builtin", "user")


@dataclass(frozen=True)
class _Snapshot:
    builtin: Mapping[str, SiteRule]
    user: Mapping[str, SiteRule]
    merged: Mapping[str, SiteRule]


def _freeze(rules: Dict[str, SiteRule]) -> Mapping[str, SiteRule]:
    return MappingProxyType(dict(rules))


def _merge(builtin: Mapping[str, SiteRule], user: Mapping[str, SiteRule]) -> _Snapshot:
    merged: Dict[str, SiteRule] = dict(builtin)
    merged.update(user)
    return _Snapshot(builtin=_freeze(dict(builtin)), user=_freeze(dict(user)), merged=_freeze(merged))


def host_of(domain_or_url: str) -> str:
    """Accepts a bare domain or a full URL."""
    s = (domain_or_url or "").strip()
    if "://" in s:
        s = urlparse(s).hostname or ""
    elif s != WILDCARD_DOMAIN:
        s = s.split("/")[0].split(":")[0]
    return normalize_domain(s)


class RuleRegistry:
    """
    Owned by the composition root and injected wherever rules are needed;
    there is no module-level instance.
    """

    def __init__(
        self,
        store: Optional[RuleStore] = None,
        seed: Optional[Iterable[SiteRule]] = None,
    ) -> None:
        self.store = store
        self._write_lock = threading.Lock()
        seeded = list(builtin_rules() if seed is None else seed)
        builtin = {r.domain: r.model_copy(update={"origin": "builtin"}) for r in seeded}
        if WILDCARD_DOMAIN not in builtin:
            fallback = next(r for r in builtin_rules() if r.is_wildcard)
            builtin[WILDCARD_DOMAIN] = fallback
        self._snapshot = _merge(builtin, {})

    # ------------------------------------------------------------
    # Reads (lock-free: one reference read per call)
    # ------------------------------------------------------------

    def resolve_rule(self, domain: str) -> Optional[SiteRule]:
        """
        Lookup order:
          1. exact enabled match
          2. parent-domain suffixes, first enabled one with inherit_subdomains
          3. wildcard
        """
        merged = self._snapshot.merged
        d = host_of(domain)

        rule = merged.get(d)
        if rule is not None and rule.enabled:
            return rule

        parts = d.split(".")
        for i in range(1, len(parts)):
            parent = ".".join(parts[i:])
            rule = merged.get(parent)
            if rule is not None and rule.enabled and rule.inherit_subdomains:
                return rule

        rule = merged.get(WILDCARD_DOMAIN)
        if rule is not None and rule.enabled:
            return rule
        return None

    def has_rule(self, domain: str) -> bool:
        return self.resolve_rule(domain) is not None

    def all_rules(self) -> List[SiteRule]:
        return sorted(self._snapshot.merged.values(), key=lambda r: r.priority, reverse=True)

    def user_rules(self) -> List[SiteRule]:
        return list(self._snapshot.user.values())

    def stats(self) -> Dict[str, int]:
        snap = self._snapshot
        rules = list(snap.merged.values())
        return {
            "total": len(rules),
            "builtin": len(snap.builtin),
            "user": len(snap.user),
            "enabled": sum(1 for r in rules if r.enabled),
            "disabled": sum(1 for r in rules if not r.enabled),
        }

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------

    def load(self) -> bool:
        """
        Replace the user store with what persistence holds.
        On failure the last-good snapshot stays and False is returned.
        """
        if self.store is None:
            return True

        # read and swap under one lock so a concurrent add/remove is not overwritten
        with self._write_lock:
            try:
                rows = self.store.get()
            except RuleStoreUnavailable as e:
                logger.warning("[rules] LOAD_FAILED keeping last-good rules: %s", e)
                return False

            user: Dict[str, SiteRule] = {}
            for row in rows:
                try:
                    rule = SiteRule(**{**row, "origin": "user"})
                except (ValidationError, TypeError) as e:
                    logger.warning("[rules] SKIP invalid stored rule %r: %s", row.get("domain"), e)
                    continue
                user[rule.domain] = rule

            self._snapshot = _merge(self._snapshot.builtin, user)
        logger.info("[rules] loaded user_rules=%d", len(user))
        return True

    def add_rule(self, domain: str, body: Mapping[str, Any], origin: str = "user") -> Optional[SiteRule]:
        """
        Upsert into the origin store and publish a new merged view.
        User rules are persisted first; if that fails nothing changes and
        None is returned. Invalid bodies raise pydantic.ValidationError.
        """
        if origin not in ORIGINS:
            raise ValueError(f"unknown rule origin {origin!r}")
        rule = SiteRule(**{**dict(body), "domain": domain, "origin": origin})

        with self._write_lock:
            snap = self._snapshot
            if origin == "builtin":
                builtin = dict(snap.builtin)
                builtin[rule.domain] = rule
                self._snapshot = _merge(builtin, snap.user)
            else:
                user = dict(snap.user)
                user[rule.domain] = rule
                if not self._persist(user):
                    return None
                self._snapshot = _merge(snap.builtin, user)

        logger.info("[rules] ADD %s rule for %s (id=%s)", origin, rule.domain, rule.id)
        return rule

    def remove_rule(self, domain: str, origin: str = "user") -> bool:
        """Delete from the named store only. The builtin wildcard cannot be removed."""
        if origin not in ORIGINS:
            raise ValueError(f"unknown rule origin {origin!r}")
        d = normalize_domain(domain)

        with self._write_lock:
            snap = self._snapshot
            if origin == "builtin":
                if d == WILDCARD_DOMAIN:
                    logger.warning("[rules] REFUSE removing the builtin wildcard rule")
                    return False
                if d not in snap.builtin:
                    return False
                builtin = dict(snap.builtin)
                del builtin[d]
                self._snapshot = _merge(builtin, snap.user)
            else:
                if d not in snap.user:
                    return False
                user = dict(snap.user)
                del user[d]
                if not self._persist(user):
                    return False
                self._snapshot = _merge(snap.builtin, user)

        logger.info("[rules] REMOVE %s rule for %s", origin, d)
        return True

    def _persist(self, user: Mapping[str, SiteRule]) -> bool:
        if self.store is None:
            return True
        try:
            self.store.put([r.to_store_dict() for r in user.values()])
        except RuleStoreUnavailable as e:
            logger.warning("[rules] SAVE_FAILED keeping last-good rules: %s", e)
            return False
        return True

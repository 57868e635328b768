from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

WILDCARD_DOMAIN = "*"
WILDCARD_PRIORITY = 0


def normalize_domain(domain: Optional[str]) -> str:
    """Lowercase and strip one leading 'www.' label. The wildcard is kept as-is."""
    d = (domain or "").strip().lower()
    if d == WILDCARD_DOMAIN:
        return d
    if d.startswith("www."):
        d = d[4:]
    return d


class DateCandidate(BaseModel):
    kind: Literal["date", "datetime"]
    start: str                         # ISO instant with offset, or YYYY-MM-DD
    end: str
    timezone: Optional[str] = None     # set only for kind="datetime"
    confidence: float = Field(ge=0.0, le=1.0)
    source_strategy: str
    year_inferred: bool = False

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "DateCandidate":
        if self.kind == "datetime":
            if datetime.fromisoformat(self.end) < datetime.fromisoformat(self.start):
                raise ValueError("end must not be before start")
            if not self.timezone:
                raise ValueError("datetime candidates need a timezone")
        else:
            if date.fromisoformat(self.end) < date.fromisoformat(self.start):
                raise ValueError("end must not be before start")
        return self

    @property
    def has_time(self) -> bool:
        return self.kind == "datetime"

    def start_date(self) -> date:
        if self.kind == "datetime":
            return datetime.fromisoformat(self.start).date()
        return date.fromisoformat(self.start)

    def start_datetime(self) -> Optional[datetime]:
        if self.kind != "datetime":
            return None
        return datetime.fromisoformat(self.start)


class SiteRule(BaseModel):
    """
    Domain-keyed extraction rule.

    selectors maps a field name (title, description, date, location, price,
    ignore) to a CSS selector list.
    """
    model_config = ConfigDict(frozen=True)

    domain: str
    priority: int = 5
    selectors: Dict[str, str] = Field(default_factory=dict)
    extractor_module: str = "general"
    inherit_subdomains: bool = False
    origin: Literal["builtin", "user"] = "user"
    enabled: bool = True
    id: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        domain = normalize_domain(data.get("domain"))
        if not domain:
            raise ValueError("domain is required")
        data["domain"] = domain

        if domain == WILDCARD_DOMAIN:
            # the catch-all is always live and always last
            data["priority"] = WILDCARD_PRIORITY
            data["enabled"] = True
        elif int(data.get("priority", 5)) < 1:
            raise ValueError("priority must be >= 1 for domain rules")

        if not data.get("id"):
            origin = data.get("origin") or "user"
            data["id"] = f"{origin}_{domain}_{uuid.uuid4().hex[:8]}"
        return data

    @property
    def is_wildcard(self) -> bool:
        return self.domain == WILDCARD_DOMAIN

    def selector(self, name: str) -> Optional[str]:
        s = (self.selectors.get(name) or "").strip()
        return s or None

    def to_store_dict(self) -> Dict[str, Any]:
        """Persisted form: everything except the origin, which the store implies."""
        return self.model_dump(exclude={"origin"})


class Provenance(BaseModel):
    selection_text: str = ""
    heading: Optional[str] = None
    page_title: str = ""
    extracted_at: datetime
    date_source: Optional[str] = None      # selection | heading | neighbour[i] | parent | delegate
    date_text_used: Optional[str] = None
    rule_id: Optional[str] = None
    rule_domain: Optional[str] = None
    extractor: str = "heuristic"
    fallbacks: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class EventCandidate(BaseModel):
    title: str
    description: str = ""
    date: Optional[DateCandidate] = None
    source_url: str = ""
    provenance: Provenance

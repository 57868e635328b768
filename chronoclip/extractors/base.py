from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from ..models import SiteRule
from ..types import PageMeta, SelectionContext


@dataclass(frozen=True)
class ExtractionRequest:
    node: Any
    page: PageMeta
    rule: Optional[SiteRule]
    context: SelectionContext


@dataclass
class ExtractedFields:
    """
    What a site-aware extractor found. Any field may be None; the builder
    fills the gaps with its own heuristics.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    date_text: Optional[str] = None
    extractor: str = "site"

    def is_empty(self) -> bool:
        return not (self.title or self.description or self.date_text)


class FieldExtractor(ABC):
    @abstractmethod
    def extract(self, request: ExtractionRequest) -> Optional[ExtractedFields]:
        """Return fields for the selection, or None if the page gave nothing."""

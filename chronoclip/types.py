from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass(frozen=True)
class PageMeta:
    page_url: str = ""
    page_title: str = ""


@dataclass(frozen=True)
class RawSelection:
    """
    Immutable snapshot of what the user selected.
    `node` is an opaque handle only the DocumentAccessor understands.
    """
    text: str
    node: Any = None
    page_url: str = ""
    page_title: str = ""

    @property
    def page(self) -> PageMeta:
        return PageMeta(page_url=self.page_url, page_title=self.page_title)


@dataclass(frozen=True)
class HeadingContext:
    text: str
    level: int
    distance: int
    path: str


@dataclass(frozen=True)
class ParentContext:
    tag: str
    qualifiers: List[str]
    text: str
    path: str


@dataclass(frozen=True)
class NeighbourParagraph:
    position: str  # "before" | "after"
    tag: str
    text: str
    path: str


@dataclass
class SelectionContext:
    normalized_selection: str = ""
    heading: Optional[HeadingContext] = None
    parent: Optional[ParentContext] = None
    neighbour_paragraphs: List[NeighbourParagraph] = field(default_factory=list)
    container_path: str = ""

    def text_sources(self) -> List[tuple[str, str]]:
        """
        (label, text) pairs in date-resolution order:
        selection, heading, each neighbour paragraph, parent. Empty texts dropped.
        """
        sources: List[tuple[str, str]] = [("selection", self.normalized_selection)]
        if self.heading:
            sources.append(("heading", self.heading.text))
        for i, p in enumerate(self.neighbour_paragraphs):
            sources.append((f"neighbour[{i}]", p.text))
        if self.parent:
            sources.append(("parent", self.parent.text))
        return [(label, text) for label, text in sources if text]

"""
Document-tree accessor capability.

The collector and the builder only ever see opaque node handles and go
through a DocumentAccessor to look around them. SoupAccessor is the
BeautifulSoup-backed implementation used by the pipeline and the tests.
"""
from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol

from bs4 import BeautifulSoup, NavigableString, Tag

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


class DocumentAccessor(Protocol):
    def container(self, node: Any) -> Any:
        """Element holding `node` (text nodes resolve to their parent)."""

    def tag(self, node: Any) -> Optional[str]:
        ...

    def identifier(self, node: Any) -> Optional[str]:
        ...

    def qualifiers(self, node: Any) -> List[str]:
        ...

    def parent(self, node: Any) -> Any:
        ...

    def previous_sibling(self, node: Any) -> Any:
        ...

    def next_sibling(self, node: Any) -> Any:
        ...

    def text(self, node: Any) -> str:
        """Raw (un-normalized) text content."""

    def closest(self, node: Any, predicate: Callable[[Any], bool]) -> Any:
        ...


def heading_level(tag: Optional[str]) -> Optional[int]:
    t = (tag or "").lower()
    if t in HEADING_TAGS:
        return int(t[1])
    return None


class SoupAccessor:
    """DocumentAccessor over bs4 elements. Only Tag nodes count as elements."""

    def container(self, node: Any) -> Optional[Tag]:
        if isinstance(node, NavigableString):
            node = node.parent
        if isinstance(node, BeautifulSoup) or not isinstance(node, Tag):
            return None
        return node

    def tag(self, node: Any) -> Optional[str]:
        return node.name.lower() if isinstance(node, Tag) and node.name else None

    def identifier(self, node: Any) -> Optional[str]:
        if not isinstance(node, Tag):
            return None
        v = node.get("id")
        if isinstance(v, list):
            v = " ".join(v)
        return (v or "").strip() or None

    def qualifiers(self, node: Any) -> List[str]:
        if not isinstance(node, Tag):
            return []
        classes = node.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        return [c for c in classes if c]

    def parent(self, node: Any) -> Optional[Tag]:
        if not isinstance(node, (Tag, NavigableString)):
            return None
        p = node.parent
        # the BeautifulSoup object is the document, not an element
        if p is None or isinstance(p, BeautifulSoup):
            return None
        return p

    def previous_sibling(self, node: Any) -> Optional[Tag]:
        sib = getattr(node, "previous_sibling", None)
        while sib is not None and not isinstance(sib, Tag):
            sib = sib.previous_sibling
        return sib

    def next_sibling(self, node: Any) -> Optional[Tag]:
        sib = getattr(node, "next_sibling", None)
        while sib is not None and not isinstance(sib, Tag):
            sib = sib.next_sibling
        return sib

    def text(self, node: Any) -> str:
        if isinstance(node, NavigableString):
            return str(node)
        if isinstance(node, Tag):
            return node.get_text(" ")
        return ""

    def closest(self, node: Any, predicate: Callable[[Any], bool]) -> Optional[Tag]:
        current = self.container(node)
        while current is not None:
            if predicate(current):
                return current
            current = self.parent(current)
        return None

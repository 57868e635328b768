from __future__ import annotations

import logging
from typing import Any, List, Optional

from ..config import ExtractionConfig
from ..errors import ContextUnavailable
from ..normalize import normalize_text
from ..types import HeadingContext, NeighbourParagraph, ParentContext, SelectionContext
from .accessor import DocumentAccessor, heading_level

logger = logging.getLogger(__name__)

MAX_PATH_DEPTH = 5
MAX_QUALIFIERS = 2
MAX_NEIGHBOURS_EACH_SIDE = 3
MIN_NEIGHBOUR_CHARS = 10  # raw, trimmed; strictly greater


class ContextCollector:
    """
    Gathers the text around a selection: nearest heading, parent element and
    up to three element siblings on each side. Read-only, and every walk is
    bounded, so collection always terminates.
    """

    def __init__(self, accessor: Optional[DocumentAccessor], config: Optional[ExtractionConfig] = None) -> None:
        self.accessor = accessor
        self.config = config or ExtractionConfig()

    def _norm(self, text: str) -> str:
        return normalize_text(text, self.config.script_ranges)

    def collect(self, node: Any, selection_text: str) -> SelectionContext:
        ctx = SelectionContext(normalized_selection=self._norm(selection_text))
        if node is None:
            return ctx
        if self.accessor is None:
            raise ContextUnavailable("no document accessor configured")

        container = self.accessor.container(node)
        if container is None:
            return ctx

        ctx.container_path = self.structural_path(container)
        ctx.heading = self.nearest_heading(container)
        ctx.parent = self._parent_context(container)
        ctx.neighbour_paragraphs = self.neighbour_paragraphs(container)
        return ctx

    # ------------------------------------------------------------
    # Structural path
    # ------------------------------------------------------------

    def structural_path(self, element: Any) -> str:
        """
        "div.event-card > section#main"-style path, leaf last.
        Stops at (and includes) the first ancestor with an id; at most
        MAX_PATH_DEPTH segments.
        """
        acc = self.accessor
        if acc is None or element is None:
            return ""

        segments: List[str] = []
        current = element
        while current is not None and len(segments) < MAX_PATH_DEPTH:
            tag = acc.tag(current)
            if not tag:
                break
            ident = acc.identifier(current)
            if ident:
                segments.insert(0, f"{tag}#{ident}")
                break
            classes = acc.qualifiers(current)[:MAX_QUALIFIERS]
            segments.insert(0, tag + "".join(f".{c}" for c in classes))
            current = acc.parent(current)

        return " > ".join(segments)

    # ------------------------------------------------------------
    # Heading
    # ------------------------------------------------------------

    def nearest_heading(self, element: Any) -> Optional[HeadingContext]:
        """Previous sibling, else parent, one hop at a time."""
        acc = self.accessor
        if acc is None:
            return None

        current = element
        distance = 0
        while current is not None and distance < self.config.heading_max_hops:
            level = heading_level(acc.tag(current))
            if level is not None:
                return HeadingContext(
                    text=self._norm(acc.text(current)),
                    level=level,
                    distance=distance,
                    path=self.structural_path(current),
                )
            prev = acc.previous_sibling(current)
            current = prev if prev is not None else acc.parent(current)
            distance += 1
        return None

    # ------------------------------------------------------------
    # Parent + neighbours
    # ------------------------------------------------------------

    def _parent_context(self, element: Any) -> Optional[ParentContext]:
        acc = self.accessor
        parent = acc.parent(element) if acc else None
        if parent is None:
            return None
        return ParentContext(
            tag=acc.tag(parent) or "",
            qualifiers=acc.qualifiers(parent),
            text=self._norm(acc.text(parent)),
            path=self.structural_path(parent),
        )

    def neighbour_paragraphs(self, element: Any) -> List[NeighbourParagraph]:
        acc = self.accessor
        if acc is None:
            return []

        found: List[NeighbourParagraph] = []
        for position, step in (("before", acc.previous_sibling), ("after", acc.next_sibling)):
            sib = step(element)
            seen = 0
            while sib is not None and seen < MAX_NEIGHBOURS_EACH_SIDE:
                raw = acc.text(sib) or ""
                if len(raw.strip()) > MIN_NEIGHBOUR_CHARS:
                    found.append(
                        NeighbourParagraph(
                            position=position,
                            tag=acc.tag(sib) or "",
                            text=self._norm(raw),
                            path=self.structural_path(sib),
                        )
                    )
                sib = step(sib)
                seen += 1

        logger.debug("[context] %d neighbour paragraph(s) kept", len(found))
        return found

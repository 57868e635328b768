from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Set, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag

from ..config import NOISE_WORDS
from ..errors import DelegateUnavailable
from ..noise_text import is_noise_text
from ..normalize import normalize_text
from .base import ExtractedFields, ExtractionRequest, FieldExtractor
from .structured_time import jsonld_start_date, time_element_datetime

logger = logging.getLogger(__name__)

BLOCK_TAGS = ("article", "li", "section")
BLOCK_CLASS_HINTS = ("card", "event", "item")
MAX_DESCRIPTION_BLOCKS = 3


def _clean(text: str) -> str:
    return " ".join((text or "").split())


def is_valid_title(text: str, noise_words: Iterable[str] = NOISE_WORDS) -> bool:
    return 3 <= len(text) <= 200 and not is_noise_text(text, noise_words)


def is_valid_description(text: str, noise_words: Iterable[str] = NOISE_WORDS) -> bool:
    return 10 <= len(text) <= 1000 and not is_noise_text(text, noise_words)


def score_title_candidate(text: str, el: Tag) -> float:
    score = 0.5
    if el.name == "h1":
        score += 0.3
    elif el.name == "h2":
        score += 0.2

    classes = " ".join(el.get("class") or []).lower()
    if "title" in classes:
        score += 0.2
    if "event" in classes:
        score += 0.1

    if 10 <= len(text) <= 60:
        score += 0.1
    elif len(text) > 100:
        score -= 0.2
    return min(1.0, max(0.0, score))


class SelectorFieldExtractor(FieldExtractor):
    """
    Site-aware extraction driven by the resolved SiteRule's selectors.

    Search scope is the selection's enclosing block (article / li / section /
    *card*-classed element) first, then the whole document. Elements inside
    the rule's `ignore` selector are skipped.
    """

    def __init__(self, noise_words: Iterable[str] = NOISE_WORDS) -> None:
        self.noise_words = tuple(noise_words)

    def extract(self, request: ExtractionRequest) -> Optional[ExtractedFields]:
        node = request.node
        if not isinstance(node, (Tag, NavigableString)):
            raise DelegateUnavailable(f"selector extractor needs a bs4 node, got {type(node).__name__}")
        rule = request.rule
        if rule is None:
            return None

        root = self._document_root(node)
        block = self._enclosing_block(node)
        scopes: List[Any] = [s for s in (block, root) if s is not None]
        ignored = self._ignored_ids(root, rule.selector("ignore"))

        fields = ExtractedFields(extractor=f"site:{rule.extractor_module}")

        title_sel = rule.selector("title")
        if title_sel:
            fields.title = self._best_title(scopes, title_sel, ignored)

        desc_sel = rule.selector("description")
        if desc_sel:
            fields.description = self._description(scopes, desc_sel, ignored)

        fields.date_text = self._date_text(root, block, rule.selector("date"), ignored)

        if fields.is_empty():
            return None
        logger.debug(
            "[extractor] %s title=%r date_text=%r", fields.extractor, fields.title, fields.date_text
        )
        return fields

    # ------------------------------------------------------------
    # Tree helpers
    # ------------------------------------------------------------

    @staticmethod
    def _document_root(node: Any) -> Any:
        root = node
        while root.parent is not None:
            root = root.parent
        return root

    @staticmethod
    def _enclosing_block(node: Any) -> Optional[Tag]:
        current = node.parent if isinstance(node, NavigableString) else node
        while isinstance(current, Tag) and not isinstance(current, BeautifulSoup):
            if current.name in BLOCK_TAGS:
                return current
            classes = " ".join(current.get("class") or []).lower()
            if any(h in classes for h in BLOCK_CLASS_HINTS):
                return current
            current = current.parent
        return None

    @staticmethod
    def _ignored_ids(root: Any, selector: Optional[str]) -> Set[int]:
        if not selector:
            return set()
        return {id(el) for el in root.select(selector)}

    @staticmethod
    def _is_ignored(el: Tag, ignored: Set[int]) -> bool:
        if not ignored:
            return False
        current: Any = el
        while current is not None:
            if id(current) in ignored:
                return True
            current = current.parent
        return False

    def _select(self, scope: Any, selector: str, ignored: Set[int]) -> List[Tag]:
        return [el for el in scope.select(selector) if not self._is_ignored(el, ignored)]

    # ------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------

    def _best_title(self, scopes: List[Any], selector: str, ignored: Set[int]) -> Optional[str]:
        for scope in scopes:
            candidates: List[Tuple[float, str]] = []
            for el in self._select(scope, selector, ignored):
                text = _clean(el.get_text(" "))
                if is_valid_title(text, self.noise_words):
                    candidates.append((score_title_candidate(text, el), text))
            if candidates:
                # stable: equal scores keep document order
                candidates.sort(key=lambda c: c[0], reverse=True)
                return candidates[0][1]
        return None

    def _description(self, scopes: List[Any], selector: str, ignored: Set[int]) -> Optional[str]:
        for scope in scopes:
            parts: List[str] = []
            for el in self._select(scope, selector, ignored)[:MAX_DESCRIPTION_BLOCKS]:
                text = _clean(el.get_text(" "))
                if is_valid_description(text, self.noise_words) and text not in parts:
                    parts.append(text)
            if parts:
                return "\n\n".join(parts)
        return None

    def _date_text(
        self,
        root: Any,
        block: Optional[Tag],
        selector: Optional[str],
        ignored: Set[int],
    ) -> Optional[str]:
        if block is not None:
            found = time_element_datetime(block)
            if found:
                return found

        found = jsonld_start_date(root)
        if found:
            return found

        if selector:
            for scope in (block, root):
                if scope is None:
                    continue
                for el in self._select(scope, selector, ignored):
                    attr = (el.get("datetime") or "").strip()
                    if attr:
                        return attr
                    text = normalize_text(el.get_text(" "))
                    if text:
                        return text
        return None

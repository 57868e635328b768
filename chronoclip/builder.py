from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional
from zoneinfo import ZoneInfo

from .config import ExtractionConfig
from .context.collector import ContextCollector
from .dates.resolver import DateTimeResolver
from .errors import ContextUnavailable, DelegateUnavailable, ParseFailure
from .extractors.base import ExtractedFields, ExtractionRequest, FieldExtractor
from .models import DateCandidate, EventCandidate, Provenance, SiteRule
from .noise_text import is_noise_text
from .normalize import first_line, normalize_text, remove_date_tokens, truncate
from .rules.registry import RuleRegistry
from .types import PageMeta, SelectionContext

logger = logging.getLogger(__name__)

GENERIC_TITLE = "Event"
TITLE_MAX_CHARS = 30
DESCRIPTION_MAX_NEIGHBOURS = 2
DESCRIPTION_NEIGHBOUR_MIN = 20   # exclusive
DESCRIPTION_NEIGHBOUR_MAX = 200  # exclusive
DELEGATE_NOT_APPLICABLE = "delegate: not applicable (no document node)"


class EventCandidateBuilder:
    """
    Merges context, date resolution and the optional site-aware extractor
    into one EventCandidate.

    build() always returns a candidate. The only caller-visible failure is a
    call with neither selection text nor a node (ContextUnavailable).
    """

    def __init__(
        self,
        resolver: DateTimeResolver,
        collector: ContextCollector,
        registry: Optional[RuleRegistry] = None,
        field_extractor: Optional[FieldExtractor] = None,
        config: Optional[ExtractionConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.resolver = resolver
        self.collector = collector
        self.registry = registry
        self.field_extractor = field_extractor
        self.config = config or ExtractionConfig()
        self.tz = ZoneInfo(self.config.timezone)
        self.clock = clock or (lambda: datetime.now(self.tz))

    def _norm(self, text: Optional[str]) -> str:
        return normalize_text(text, self.config.script_ranges)

    # ------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------

    def build(self, selection_text: str, node: Any = None, page: Optional[PageMeta] = None) -> EventCandidate:
        if not (isinstance(selection_text, str) and selection_text.strip()) and node is None:
            raise ContextUnavailable("nothing to extract from: no selection text and no node")

        page = page or PageMeta()
        now = self.clock()
        provenance = Provenance(
            selection_text=self._norm(selection_text),
            page_title=page.page_title,
            extracted_at=now.astimezone(timezone.utc),
        )
        ctx = SelectionContext(normalized_selection=provenance.selection_text)

        try:
            return self._build(selection_text, node, page, now, provenance, ctx)
        except Exception as e:
            logger.exception("[builder] EXTRACT_FAILED url=%s", page.page_url)
            provenance.error = f"{type(e).__name__}: {e}"
            return EventCandidate(
                title=self._heuristic_title(selection_text, ctx),
                description=self._heuristic_description(ctx),
                date=None,
                source_url=page.page_url,
                provenance=provenance,
            )

    def submit(
        self,
        executor: Executor,
        selection_text: str,
        node: Any = None,
        page: Optional[PageMeta] = None,
    ) -> "Future[EventCandidate]":
        return executor.submit(self.build, selection_text, node, page)

    # ------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------

    def _build(
        self,
        selection_text: str,
        node: Any,
        page: PageMeta,
        now: datetime,
        provenance: Provenance,
        ctx: SelectionContext,
    ) -> EventCandidate:
        # 1) context
        try:
            collected = self.collector.collect(node, selection_text)
        except ContextUnavailable as e:
            logger.warning("[builder] context unavailable: %s", e)
            provenance.fallbacks.append(f"context: {e}")
        else:
            ctx.heading = collected.heading
            ctx.parent = collected.parent
            ctx.neighbour_paragraphs = collected.neighbour_paragraphs
            ctx.container_path = collected.container_path
        provenance.heading = ctx.heading.text if ctx.heading else None

        # 2) date: first text source with a result wins
        date_candidate = self._resolve_date(ctx, now, provenance)

        # 3) site-aware delegate
        rule = self._resolve_rule(page)
        if rule is not None:
            provenance.rule_id = rule.id
            provenance.rule_domain = rule.domain
        fields = self._run_delegate(node, page, rule, ctx, provenance)

        if date_candidate is None and fields and fields.date_text:
            date_candidate = self.resolver.resolve(fields.date_text, now)
            if date_candidate is not None:
                provenance.date_source = "delegate"
                provenance.date_text_used = fields.date_text

        if date_candidate is None:
            provenance.fallbacks.append(f"date: {ParseFailure.__name__}")

        # 4) merge
        title = (fields.title if fields else None) or self._heuristic_title(selection_text, ctx)
        description = (fields.description if fields else None) or self._heuristic_description(ctx)

        return EventCandidate(
            title=title,
            description=description,
            date=date_candidate,
            source_url=page.page_url,
            provenance=provenance,
        )

    def _resolve_date(
        self,
        ctx: SelectionContext,
        now: datetime,
        provenance: Provenance,
    ) -> Optional[DateCandidate]:
        for label, text in ctx.text_sources():
            candidate = self.resolver.resolve(text, now)
            if candidate is not None:
                provenance.date_source = label
                provenance.date_text_used = text
                return candidate
        return None

    def _resolve_rule(self, page: PageMeta) -> Optional[SiteRule]:
        if self.registry is None:
            return None
        # no URL still resolves to the wildcard rule
        return self.registry.resolve_rule(page.page_url)

    def _run_delegate(
        self,
        node: Any,
        page: PageMeta,
        rule: Optional[SiteRule],
        ctx: SelectionContext,
        provenance: Provenance,
    ) -> Optional[ExtractedFields]:
        if self.field_extractor is None:
            provenance.fallbacks.append(f"delegate: {DelegateUnavailable.__name__} (not configured)")
            return None
        if node is None:
            logger.debug("[builder] text-only build, site extractor skipped")
            provenance.fallbacks.append(DELEGATE_NOT_APPLICABLE)
            return None
        try:
            fields = self.field_extractor.extract(
                ExtractionRequest(node=node, page=page, rule=rule, context=ctx)
            )
        except Exception as e:
            logger.warning("[builder] delegate failed: %s: %s", type(e).__name__, e)
            provenance.fallbacks.append(f"delegate: {DelegateUnavailable.__name__} ({type(e).__name__}: {e})")
            return None
        if fields is None or fields.is_empty():
            return None
        provenance.extractor = fields.extractor
        return fields

    # ------------------------------------------------------------
    # Heuristics
    # ------------------------------------------------------------

    def _heuristic_title(self, selection_text: Optional[str], ctx: SelectionContext) -> str:
        """
        1. nearest heading (unless it is page chrome)
        2. first line of the selection, normalized, max 30 chars + "..."
        3. generic label
        Date/time tokens are stripped when something meaningful remains.
        """
        heading = ctx.heading.text if ctx.heading else ""
        if heading and not is_noise_text(heading, self.config.noise_words):
            return remove_date_tokens(heading)

        line = self._norm(first_line(selection_text if isinstance(selection_text, str) else ""))
        if line:
            return remove_date_tokens(truncate(line, TITLE_MAX_CHARS))

        return GENERIC_TITLE

    def _heuristic_description(self, ctx: SelectionContext) -> str:
        parts: List[str] = []
        if ctx.normalized_selection:
            parts.append(ctx.normalized_selection)

        picked: List[str] = []
        for p in ctx.neighbour_paragraphs:
            if len(picked) >= DESCRIPTION_MAX_NEIGHBOURS:
                break
            if not (DESCRIPTION_NEIGHBOUR_MIN < len(p.text) < DESCRIPTION_NEIGHBOUR_MAX):
                continue
            if is_noise_text(p.text, self.config.noise_words):
                continue
            picked.append(p.text)

        parts.extend(picked)
        return "\n\n".join(parts).strip()

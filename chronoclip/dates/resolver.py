from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from ..config import ExtractionConfig
from ..models import DateCandidate
from .natural import NaturalDateParser
from .patterns import PATTERNS, DateFields, DatePattern
from .utils import is_valid_date, is_valid_time

logger = logging.getLogger(__name__)

NATURAL_STRATEGY = "natural_language"

# Trust order: natural language > timed pattern > date-only pattern
CONFIDENCE_NATURAL_TIME = 0.9
CONFIDENCE_NATURAL_DATE = 0.8
CONFIDENCE_PATTERN_TIME = 0.7
CONFIDENCE_PATTERN_DATE = 0.6


class DateTimeResolver:
    """
    Strategy chain, first success wins:
      1. natural-language parser (optional capability, fixed at construction)
      2. regex patterns in PATTERNS order

    resolve() never raises. Strategy errors are logged and count as no match.
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        natural_parser: Optional[NaturalDateParser] = None,
        patterns: Sequence[DatePattern] = PATTERNS,
    ) -> None:
        self.config = config or ExtractionConfig()
        self.natural_parser = natural_parser
        self.patterns = list(patterns)
        self.tz = ZoneInfo(self.config.timezone)
        self.duration = timedelta(minutes=self.config.default_duration_minutes)

    def _reference(self, reference: Optional[datetime]) -> datetime:
        if reference is None:
            return datetime.now(self.tz)
        if reference.tzinfo is None:
            return reference.replace(tzinfo=self.tz)
        return reference.astimezone(self.tz)

    def resolve(self, text: str, reference: Optional[datetime] = None) -> Optional[DateCandidate]:
        if not isinstance(text, str) or not text.strip():
            return None
        ref = self._reference(reference)

        if self.natural_parser is not None:
            try:
                candidate = self._resolve_natural(text, ref)
            except Exception as e:
                logger.warning("[dates] natural parser failed: %s: %s", type(e).__name__, e)
                candidate = None
            if candidate:
                return candidate

        try:
            return self._resolve_patterns(text, ref)
        except Exception as e:
            logger.warning("[dates] pattern fallback failed: %s: %s", type(e).__name__, e)
            return None

    # ------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------

    def _resolve_natural(self, text: str, ref: datetime) -> Optional[DateCandidate]:
        results = self.natural_parser.parse(text, ref, forward_bias=True)  # type: ignore[union-attr]
        if not results:
            return None
        first = results[0]

        start = first.start if first.start.tzinfo else first.start.replace(tzinfo=self.tz)
        start = start.astimezone(self.tz)

        if first.has_clock_time:
            end = first.end.astimezone(self.tz) if first.end else None
            if end is None or end < start:
                end = start + self.duration
            return DateCandidate(
                kind="datetime",
                start=start.isoformat(),
                end=end.isoformat(),
                timezone=self.config.timezone,
                confidence=CONFIDENCE_NATURAL_TIME,
                source_strategy=NATURAL_STRATEGY,
            )

        day = start.date()
        return DateCandidate(
            kind="date",
            start=day.isoformat(),
            end=day.isoformat(),
            confidence=CONFIDENCE_NATURAL_DATE,
            source_strategy=NATURAL_STRATEGY,
        )

    def _resolve_patterns(self, text: str, ref: datetime) -> Optional[DateCandidate]:
        for pattern in self.patterns:
            m = pattern.regex.search(text)
            if not m:
                continue
            fields = pattern.to_fields(m, ref.year)
            if fields is None or not self._is_valid(fields):
                logger.debug("[dates] %s matched %r but failed validation", pattern.name, m.group(0))
                continue
            logger.debug("[dates] %s matched %r", pattern.name, m.group(0))
            return self._pattern_candidate(fields, pattern.name)
        return None

    @staticmethod
    def _is_valid(fields: DateFields) -> bool:
        if not is_valid_date(fields.year, fields.month, fields.day):
            return False
        if fields.has_time and not is_valid_time(fields.hour, fields.minute):
            return False
        return True

    def _pattern_candidate(self, fields: DateFields, strategy: str) -> DateCandidate:
        if fields.has_time:
            start = datetime(
                fields.year, fields.month, fields.day, fields.hour, fields.minute, tzinfo=self.tz
            )
            end = start + self.duration
            return DateCandidate(
                kind="datetime",
                start=start.isoformat(),
                end=end.isoformat(),
                timezone=self.config.timezone,
                confidence=CONFIDENCE_PATTERN_TIME,
                source_strategy=strategy,
                year_inferred=fields.year_inferred,
            )

        day = date(fields.year, fields.month, fields.day)
        return DateCandidate(
            kind="date",
            start=day.isoformat(),
            end=day.isoformat(),
            confidence=CONFIDENCE_PATTERN_DATE,
            source_strategy=strategy,
            year_inferred=fields.year_inferred,
        )


def roll_forward_if_past(candidate: DateCandidate, reference: datetime | date) -> DateCandidate:
    """
    Push a year-inferred candidate that lies before the reference date into the
    next year. resolve() itself keeps the reference year.
    Candidates with an explicit year, or whose date does not exist next year
    (Feb 29), come back unchanged.
    """
    if not candidate.year_inferred:
        return candidate
    ref_day = reference.date() if isinstance(reference, datetime) else reference

    start_day = candidate.start_date()
    if start_day >= ref_day:
        return candidate
    if not is_valid_date(start_day.year + 1, start_day.month, start_day.day):
        return candidate

    if candidate.kind == "datetime":
        start = datetime.fromisoformat(candidate.start)
        span = datetime.fromisoformat(candidate.end) - start
        # re-attach the zone so the offset is recomputed for the new year
        tz = ZoneInfo(candidate.timezone) if candidate.timezone else start.tzinfo
        new_start = start.replace(year=start.year + 1, tzinfo=None).replace(tzinfo=tz)
        new_end = new_start + span
        return candidate.model_copy(update={"start": new_start.isoformat(), "end": new_end.isoformat()})

    new_day = start_day.replace(year=start_day.year + 1)
    span_days = date.fromisoformat(candidate.end) - start_day
    return candidate.model_copy(
        update={"start": new_day.isoformat(), "end": (new_day + span_days).isoformat()}
    )

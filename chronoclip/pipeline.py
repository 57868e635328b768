"""
Composition root.

Builds exactly one RuleRegistry and wires it, the date resolver, the context
collector and the selector extractor into an EventCandidateBuilder. Nothing
here is a module-level singleton: callers hold the builder they asked for.
"""
from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence

from bs4 import BeautifulSoup, NavigableString

from .builder import EventCandidateBuilder
from .config import RULE_STORE, RULES_FILE, WORKERS, ExtractionConfig
from .context.accessor import SoupAccessor
from .context.collector import ContextCollector
from .dates.natural import DateparserNaturalParser
from .dates.resolver import DateTimeResolver
from .extractors.selector_extractor import SelectorFieldExtractor
from .http import http_get
from .models import EventCandidate
from .normalize import first_line
from .rules.registry import RuleRegistry
from .rules.store import JsonFileRuleStore, RuleStore, SupabaseRuleStore
from .types import PageMeta, RawSelection

logger = logging.getLogger(__name__)

_SKIP_PARENTS = ("script", "style", "noscript", "template")


def build_rule_store(kind: str = RULE_STORE, rules_file: str = RULES_FILE) -> Optional[RuleStore]:
    kind = (kind or "").strip().lower()
    if kind in ("", "none", "off"):
        return None
    if kind == "file":
        return JsonFileRuleStore(rules_file)
    if kind == "supabase":
        return SupabaseRuleStore()
    raise ValueError(f"unknown CHRONOCLIP_RULE_STORE {kind!r} (expected file | supabase | none)")


def build_builder(
    config: Optional[ExtractionConfig] = None,
    store: Optional[RuleStore] = None,
    registry: Optional[RuleRegistry] = None,
    use_natural_parser: bool = True,
) -> EventCandidateBuilder:
    config = config or ExtractionConfig()
    if registry is None:
        registry = RuleRegistry(store=store)
        registry.load()

    natural = (
        DateparserNaturalParser(languages=config.nl_languages, tz_name=config.timezone)
        if use_natural_parser
        else None
    )
    return EventCandidateBuilder(
        resolver=DateTimeResolver(config=config, natural_parser=natural),
        collector=ContextCollector(SoupAccessor(), config=config),
        registry=registry,
        field_extractor=SelectorFieldExtractor(noise_words=config.noise_words),
        config=config,
    )


def find_selection_node(soup: BeautifulSoup, selection_text: str) -> Optional[NavigableString]:
    """Text node holding the first line of the selection (whitespace-insensitive)."""
    needle = " ".join(first_line(selection_text).split())
    if not needle:
        return None
    for s in soup.find_all(string=True):
        if s.parent is not None and s.parent.name in _SKIP_PARENTS:
            continue
        if needle in " ".join(str(s).split()):
            return s
    return None


def extract_from_html(
    html: str,
    selection_text: str,
    page_url: str = "",
    page_title: str = "",
    builder: Optional[EventCandidateBuilder] = None,
) -> EventCandidate:
    builder = builder or build_builder()
    soup = BeautifulSoup(html or "", "html.parser")
    if not page_title and soup.title:
        page_title = soup.title.get_text(" ", strip=True)
    node = find_selection_node(soup, selection_text)
    if node is None:
        logger.info("[pipeline] selection not found in document, extracting from text only")
    return builder.build(selection_text, node, PageMeta(page_url=page_url, page_title=page_title))


def extract_many(
    selections: Sequence[RawSelection],
    builder: EventCandidateBuilder,
    workers: int = WORKERS,
) -> List[EventCandidate]:
    """Independent builds on a bounded pool; results come back in input order."""
    results: Dict[int, EventCandidate] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(workers, 32))) as pool:
        futures = {
            builder.submit(pool, sel.text, sel.node, sel.page): i
            for i, sel in enumerate(selections)
        }
        for fut in as_completed(futures):
            results[futures[fut]] = fut.result()
    return [results[i] for i in range(len(selections))]


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Extract a calendar event candidate from page text.")
    parser.add_argument("--selection", required=True, help="Selected text on the page.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--html-file", default=None, help="Local HTML file containing the selection.")
    src.add_argument("--url", default=None, help="Fetch the page from this URL.")
    parser.add_argument("--page-url", default=None, help="Page URL used for site rules (defaults to --url).")
    parser.add_argument("--title", default="", help="Page title (defaults to <title>).")
    parser.add_argument("--rules-file", default=None, help="JSON file with user site rules.")
    parser.add_argument("--no-natural", action="store_true", help="Disable the natural-language parser.")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = JsonFileRuleStore(args.rules_file) if args.rules_file else build_rule_store()
    builder = build_builder(store=store, use_natural_parser=not args.no_natural)

    html = ""
    page_url = args.page_url or args.url or ""
    if args.url:
        html = http_get(args.url).text
    elif args.html_file:
        with open(args.html_file, "r", encoding="utf-8") as f:
            html = f.read()

    if html:
        candidate = extract_from_html(html, args.selection, page_url, args.title, builder=builder)
    else:
        candidate = builder.build(args.selection, None, PageMeta(page_url=page_url, page_title=args.title))

    print(candidate.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

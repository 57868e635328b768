from __future__ import annotations

from typing import Any, Dict, List

from ..models import WILDCARD_DOMAIN, SiteRule


def _builtin(domain: str, priority: int, module: str, **selectors: str) -> Dict[str, Any]:
    return {
        "domain": domain,
        "priority": priority,
        "extractor_module": module,
        "inherit_subdomains": True,
        "origin": "builtin",
        "id": f"builtin_{domain}",
        "selectors": selectors,
    }


_BUILTIN_RULES: List[Dict[str, Any]] = [
    _builtin(
        "eventbrite.com", 10, "eventbrite",
        title='.event-title, .event-card__title, h1[data-automation-id="event-title"]',
        description=".event-description, .event-card__description, .structured-content",
        date='.event-details__data, .date-info, [data-automation-id="event-start-date"]',
        location=".venue-info, .event-details__data--location",
        price=".event-card__price, .conversion-bar__panel-info",
        ignore=".advertisement, .ads, .footer, .header-nav",
    ),
    _builtin(
        "amazon.co.jp", 8, "amazon",
        title="#productTitle, .product-title",
        description="#feature-bullets ul, .a-unordered-list .a-list-item",
        date="#availability .a-color-success, #delivery-block",
        price=".a-price-whole, .a-offscreen",
        ignore=".nav-search-bar, .nav-footer, .a-popover, .a-declarative",
    ),
    _builtin(
        "rakuten.co.jp", 8, "rakuten",
        title=".item-name, .event-title, h1",
        description=".item-desc, .event-description",
        date=".delivery-date, .event-date, .date-info",
        price=".price, .event-price",
        ignore=".header, .footer, .side-navi, .advertisement",
    ),
    _builtin(
        "youtube.com", 7, "youtube",
        title="#title h1, .ytd-video-primary-info-renderer h1",
        description="#description-text, .ytd-video-secondary-info-renderer #description",
        date="#info-text span, .ytd-video-primary-info-renderer #info-text",
        ignore=".ytd-comments, .ytd-watch-next-secondary-results-renderer",
    ),
    _builtin(
        "twitter.com", 7, "twitter",
        title='[data-testid="tweetText"]',
        description='[data-testid="tweetText"]',
        date="time",
        ignore='[data-testid="sidebarColumn"], [data-testid="bottomBar"]',
    ),
    _builtin(
        WILDCARD_DOMAIN, 0, "general",
        title="h1, h2, .title, .event-title, .product-title, article h1, article h2",
        description=".description, .content, .event-description, .summary, article p",
        date=".date, .datetime, .event-date, .delivery-date, time, .schedule-date",
        location=".location, .venue, .address, .place",
        price=".price, .cost, .fee, .amount",
        ignore="nav, footer, aside, .sidebar, .advertisement, .ads, .header",
    ),
]


def builtin_rules() -> List[SiteRule]:
    return [SiteRule(**r) for r in _BUILTIN_RULES]

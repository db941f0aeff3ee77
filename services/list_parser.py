"""
services/list_parser.py – Listing pass: discover game ids across every listing page.
"""

import logging
from typing import Optional

from bs4 import Tag

from models.game_record import GameRecord
from services.crawl_service import Collector, MatchedElement
from services.field_extractor import last_path_segment
from services.record_store import RecordStore

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

# First listing page; later pages are reached through the pagination links.
LIST_PAGE: str = "https://app.netconplay.com/games?page=1"

# Last path segment of the listing page itself. A URL ending in it is never a game.
LIST_PATH_SEGMENT: str = "games"

# One anchor per game card.
ENTRY_SELECTOR: str = "div.games a"
ENTRY_TITLE_SELECTOR: str = "p.game_title"
ENTRY_SYSTEM_SELECTOR: str = "p:nth-child(2)"

PAGINATION_SELECTOR: str = "ul.pagination li a[href]"

# ── Public API ───────────────────────────────────────────────────────────────


def parse_list_entry(anchor: Tag) -> Optional[GameRecord]:
    """
    Build the identity-only record for one game card.

    Returns None for anchors without an href and for links back to the
    listing page. The link is kept exactly as written in the page.
    """
    link = (anchor.get("href") or "").strip()
    if not link:
        return None
    game_id = last_path_segment(link)
    if game_id == LIST_PATH_SEGMENT:
        return None

    return GameRecord(
        id=game_id,
        link=link,
        title=_first_text(anchor, ENTRY_TITLE_SELECTOR),
        system=_first_text(anchor, ENTRY_SYSTEM_SELECTOR),
    )


def register(collector: Collector, store: RecordStore) -> None:
    """Hook the game-card and pagination handlers into *collector*."""

    def on_entry(element: MatchedElement) -> None:
        record = parse_list_entry(element.tag)
        if record is None:
            return
        store.store(record.id, record)

    def on_pagination(element: MatchedElement) -> None:
        href = element.attr("href")
        if href:
            element.visit(href)

    collector.on_html(ENTRY_SELECTOR, on_entry)
    collector.on_html(PAGINATION_SELECTOR, on_pagination)


# ── Private helpers ───────────────────────────────────────────────────────────


def _first_text(tag: Tag, selector: str) -> str:
    node = tag.select_one(selector)
    return node.get_text().strip() if node else ""

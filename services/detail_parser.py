"""
services/detail_parser.py – Detail pass: turn one game page into a full GameRecord.

Layout of the detail panel
--------------------------
  <div class="panel-body">
    <h3>Title</h3>
    <div>
      <p> 1  Master name        <p> 6  Platform
      <p> 2  Description        <p> 7  Start date ("Sábado 15 marzo 2025 20:00")
      <p> 3  Security           <p> 8  Duration in hours
      <p> 4  Sensitive content  <p> 9  Streamed ("Si"/"No")
      <p> 5  System             <p>10  Initiation game ("Si"/"No")
      <p>11..15  Labelled blocks in varying order (see LABELLED_FIELDS)
    </div>
  </div>

Every labelled paragraph reads ``<p><strong>Label</strong>: value</p>``.
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from models.game_record import GameRecord
from services.crawl_service import Collector, MatchedElement
from services.exceptions import ParseError
from services.field_extractor import (
    extract_integer,
    is_affirmative,
    last_path_segment,
    parse_event_date,
    strip_label,
)
from services.list_parser import LIST_PATH_SEGMENT
from services.record_store import RecordStore

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

PANEL_SELECTOR: str = "div.panel-body"

# Ordinal position of each fixed paragraph inside the content block.
MASTER_NAME_POS: int = 1
DESCRIPTION_POS: int = 2
SECURITY_POS: int = 3
SENSIBLE_CONTENT_POS: int = 4
SYSTEM_POS: int = 5
PLATFORM_POS: int = 6
START_DATE_POS: int = 7
DURATION_POS: int = 8
STREAMED_POS: int = 9
INITIATION_POS: int = 10

# Positions that may hold one of the labelled blocks.
LABELLED_POSITIONS = range(11, 16)

FieldReader = Callable[[Tag, int], Any]

# ── Field readers ────────────────────────────────────────────────────────────


def _paragraph(content: Tag, position: int) -> Optional[Tag]:
    return content.select_one(f"p:nth-child({position})")


def _paragraph_text(content: Tag, position: int) -> str:
    node = _paragraph(content, position)
    return node.get_text().strip() if node else ""


def _labelled_text(content: Tag, position: int) -> str:
    return strip_label(_paragraph(content, position))


def _labelled_count(content: Tag, position: int) -> int:
    return extract_integer(_labelled_text(content, position)) or 0


def _next_paragraph_text(content: Tag, position: int) -> str:
    return _paragraph_text(content, position + 1)


def _label_at(content: Tag, position: int) -> str:
    label = content.select_one(f"p:nth-child({position}) strong")
    if label is None:
        return ""
    return label.get_text().strip().rstrip(":").strip().lower()


# Lower-cased label → (GameRecord field, reader). The biography sits in the
# paragraph after its heading; the other values share the label's paragraph.
LABELLED_FIELDS: Dict[str, Tuple[str, FieldReader]] = {
    "sobre la directora": ("master_description", _next_paragraph_text),
    "canal de emision": ("channel", _labelled_text),
    "número máximo de jugadoras": ("max_players", _labelled_count),
    "número de jugadoras registradas": ("registered_players", _labelled_count),
}

# ── Public API ───────────────────────────────────────────────────────────────


def parse_labelled_fields(content: Tag) -> Dict[str, Any]:
    """
    Scan LABELLED_POSITIONS and read every recognised labelled block.

    Returns a mapping of GameRecord field name to value; unrecognised labels
    are ignored and fields that were not found are absent.
    """
    fields: Dict[str, Any] = {}
    for position in LABELLED_POSITIONS:
        entry = LABELLED_FIELDS.get(_label_at(content, position))
        if entry is None:
            continue
        field_name, reader = entry
        fields[field_name] = reader(content, position)
    return fields


def parse_detail(panel: Tag, url: str) -> Optional[GameRecord]:
    """
    Build the complete record for the game page at *url*.

    Returns None when *url* is the listing page rather than a game page.
    Malformed values fall back to their zero value; the record is always
    produced.
    """
    game_id = last_path_segment(url).strip()
    if game_id == LIST_PATH_SEGMENT:
        return None

    title_node = panel.select_one("h3")
    content = panel.select_one("div")
    if content is None:
        content = BeautifulSoup("<div></div>", "html.parser").div

    start_date_text = _labelled_text(content, START_DATE_POS)
    duration_hours = extract_integer(_labelled_text(content, DURATION_POS)) or 0

    record = GameRecord(
        id=game_id,
        link=url.strip(),
        title=title_node.get_text().strip() if title_node else "",
        master_name=_labelled_text(content, MASTER_NAME_POS),
        description=_paragraph_text(content, DESCRIPTION_POS),
        security=_labelled_text(content, SECURITY_POS),
        sensible_content=_labelled_text(content, SENSIBLE_CONTENT_POS),
        system=_labelled_text(content, SYSTEM_POS),
        platform=_labelled_text(content, PLATFORM_POS),
        duration_hours=duration_hours,
        streamed=is_affirmative(_labelled_text(content, STREAMED_POS)),
        initiation_game=is_affirmative(_labelled_text(content, INITIATION_POS)),
        **parse_labelled_fields(content),
    )

    try:
        record.start_date = parse_event_date(start_date_text)
    except ParseError as exc:
        logger.warning("Game %s: %s", game_id, exc)

    try:
        record.end_date  # raises past datetime.max
    except OverflowError:
        logger.warning("Game %s: duration out of range: %d hours", game_id, duration_hours)
        record.duration_hours = 0

    return record


def register(collector: Collector, store: RecordStore) -> None:
    """Hook the detail-panel handler into *collector*."""

    def on_panel(element: MatchedElement) -> None:
        record = parse_detail(element.tag, element.url)
        if record is None:
            return
        store.store(record.id, record)

    collector.on_html(PANEL_SELECTOR, on_panel)

"""
services/field_extractor.py – Normalisers for the text scraped from NetCon pages.

Every function takes a fragment of page text (or a BeautifulSoup tag) and
returns one clean scalar. Failures are reported with ``None`` or ParseError;
callers decide whether a failure is worth more than a zero value.
"""

import copy
import re
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

from bs4 import Tag

from services.exceptions import ParseError

# ── Configuration ────────────────────────────────────────────────────────────

# Civil time zone of every date published on the site.
TIMEZONE_NAME: str = "Europe/Madrid"
TIMEZONE: ZoneInfo = ZoneInfo(TIMEZONE_NAME)

# Spanish month names the site has used so far, mapped to the English
# abbreviations understood by strptime's %b.
MONTH_SUBSTITUTIONS = (
    ("marzo", "Mar"),
    ("abril", "Apr"),
)

DATE_LAYOUT: str = "%d %b %Y %H:%M"

# "Yes" as written on the detail pages.
AFFIRMATIVE_TOKEN: str = "Si"

_NON_DIGITS: re.Pattern = re.compile(r"\D+", re.ASCII)

# ── Public API ───────────────────────────────────────────────────────────────


def extract_integer(text: str) -> Optional[int]:
    """
    Keep only the digits of *text* and read them as a base-10 integer.

    ``"12 jugadoras"`` gives 12; ``"sin límite"`` gives None.
    """
    digits = _NON_DIGITS.sub("", text or "")
    if not digits:
        return None
    return int(digits)


def extract_duration(hours: int) -> timedelta:
    return timedelta(hours=hours)


def parse_event_date(text: str) -> datetime:
    """
    Parse a date such as ``"Sábado 15 marzo 2025 20:00"``.

    The leading weekday is dropped and only the months listed in
    MONTH_SUBSTITUTIONS are understood.

    Raises
    ------
    ParseError
        When the remaining text does not match ``D Mon YYYY HH:MM``.
    """
    cleaned = (text or "").replace("\n", "")
    for spanish, english in MONTH_SUBSTITUTIONS:
        cleaned = cleaned.replace(spanish, english)
    cleaned = _remove_first_word(cleaned.strip())

    try:
        parsed = datetime.strptime(cleaned, DATE_LAYOUT)
    except ValueError as exc:
        raise ParseError(f"Unrecognised event date '{text}'.") from exc
    return parsed.replace(tzinfo=TIMEZONE)


def strip_label(tag: Optional[Tag]) -> str:
    """
    Return the value of a ``<p><strong>Label</strong>: value</p>`` paragraph.

    The label is removed from a copy, so the parsed document is left intact.
    Text without a label or leading colon comes back trimmed and otherwise
    unchanged.
    """
    if tag is None:
        return ""
    node = copy.copy(tag)
    for label in node.find_all("strong"):
        label.decompose()
    text = node.get_text().strip()
    if text.startswith(":"):
        text = text[1:]
    return text.strip()


def is_affirmative(text: str) -> bool:
    return (text or "").strip() == AFFIRMATIVE_TOKEN


def last_path_segment(url: str) -> str:
    """Final element of the URL path, with POSIX ``basename`` semantics."""
    path = urlparse(url or "").path
    if not path:
        return "."
    trimmed = path.rstrip("/")
    if not trimmed:
        return "/"
    return trimmed.rsplit("/", 1)[-1]


# ── Private helpers ───────────────────────────────────────────────────────────


def _remove_first_word(text: str) -> str:
    index = text.find(" ")
    if index == -1:
        return text
    return text[index + 1:]

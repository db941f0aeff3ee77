"""
services/export_service.py – Row projections of the record store and their upload.

Two views are produced from the same snapshot, both ordered by numeric game id:

  Partidas     one row per game with every scraped field
  Calendario   one row per game in the column layout of a calendar importer
"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from models.game_record import GameRecord
from services.field_extractor import TIMEZONE_NAME
from services.record_store import RecordStore
from services.sheets_service import SheetsClient

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

GAMES_RANGE: str = "Partidas!A:Z"
CALENDAR_RANGE: str = "Calendario!B:T"

GAMES_HEADER: List[str] = [
    "game_id", "title", "system", "description", "master_name", "master_description",
    "start_date", "duration", "end_date", "security", "sensible_content", "platform",
    "channel", "streamed", "initiation_game", "max_players", "registered_players", "completed",
]

CALENDAR_HEADER: List[str] = [
    "Update", "Title", "Start", "End", "Start Time", "End Time",
    "Repeat", "Interval", "Count", "Until", "By Day",
    "Description", "Location", "Timezone",
]

LOCK_MARK: str = "🔒"
OPEN_SEATS_MARK: str = "✨"
STREAM_MARK: str = "🎥"

# ── Ordering ─────────────────────────────────────────────────────────────────


def sorted_ids(store: RecordStore) -> List[str]:
    """
    Ids of *store* in ascending numeric order.

    Ids that are not base-10 integers sort as 0; equal keys keep the store's
    insertion order.
    """
    return sorted((game_id for game_id, _ in store.snapshot()), key=_numeric_key)


def sorted_records(store: RecordStore) -> List[GameRecord]:
    return [store.load(game_id) for game_id in sorted_ids(store)]


# ── Tabular view ─────────────────────────────────────────────────────────────


def tabular_row(game: GameRecord) -> List[Any]:
    return [
        game.id, game.title, game.system, game.description, game.master_name,
        game.master_description, _timestamp(game.start_date), game.duration,
        _timestamp(game.end_date), game.security, game.sensible_content, game.platform,
        game.channel, game.streamed, game.initiation_game, game.max_players,
        game.registered_players, game.completed,
    ]


def tabular_rows(store: RecordStore) -> List[List[Any]]:
    """Header plus one row per game."""
    return [list(GAMES_HEADER)] + [tabular_row(game) for game in sorted_records(store)]


# ── Calendar view ────────────────────────────────────────────────────────────


def calendar_title(game: GameRecord) -> str:
    """``✨ [2/6] Title 🎥`` – lock instead of sparkle once the game is full."""
    free_seats = game.free_seats
    seats_mark = OPEN_SEATS_MARK if free_seats > 0 else LOCK_MARK
    stream_mark = STREAM_MARK if game.streamed else ""
    return f"{seats_mark} [{free_seats}/{game.max_players}] {game.title} {stream_mark}"


def calendar_description(game: GameRecord) -> str:
    streamed = "Si" if game.streamed else "No"
    lines = [
        f"🔗 Enlace: {game.link}",
        f"👥 Plazas libres: {game.free_seats}/{game.max_players}",
        f"🧙🏻 Organizadora: {game.master_name}",
        f"🎲 Sistema: {game.system}",
        f"🎥 Emitida: {streamed}",
        "---",
        "📝 Descripción:",
        game.description,
        "",
        "",
    ]
    return "\n".join(lines)


def calendar_row(game: GameRecord) -> List[Any]:
    return [
        "TRUE",
        calendar_title(game),
        game.start_date.date().isoformat(),
        game.end_date.date().isoformat(),
        _clock(game.start_date),
        _clock(game.end_date),
        "", "", "", "", "",
        calendar_description(game),
        "",
        TIMEZONE_NAME,
    ]


def calendar_rows(store: RecordStore) -> List[List[Any]]:
    """Header plus one calendar entry per game."""
    return [list(CALENDAR_HEADER)] + [calendar_row(game) for game in sorted_records(store)]


# ── Upload ───────────────────────────────────────────────────────────────────


def save_games_sheet(store: RecordStore, client: Optional[SheetsClient] = None) -> int:
    """
    Overwrite the games range with the tabular view.

    Returns the number of game rows written.

    Raises
    ------
    ExportError
        When the spreadsheet rejects the write.
    """
    rows = tabular_rows(store)
    (client or SheetsClient()).update_range(GAMES_RANGE, rows)
    return len(rows) - 1


def save_calendar_sheet(store: RecordStore, client: Optional[SheetsClient] = None) -> int:
    """Same as save_games_sheet for the calendar view."""
    rows = calendar_rows(store)
    (client or SheetsClient()).update_range(CALENDAR_RANGE, rows)
    return len(rows) - 1


# ── Private helpers ───────────────────────────────────────────────────────────


def _numeric_key(game_id: str) -> int:
    try:
        return int(game_id)
    except (TypeError, ValueError):
        return 0


def _timestamp(value: datetime) -> str:
    return value.isoformat()


def _clock(value: datetime) -> str:
    return value.time().isoformat(timespec="seconds")

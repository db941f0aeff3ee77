from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from models.game_record import GameRecord
from services import export_service
from services.exceptions import ExportError
from services.record_store import RecordStore

MADRID = ZoneInfo("Europe/Madrid")


class FakeSheetsClient:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.writes = []

    def update_range(self, range_name, rows):
        if self.fail:
            raise ExportError("Sheets API returned HTTP 403")
        self.writes.append((range_name, rows))
        return {"updatedRange": range_name, "updatedRows": len(rows)}


def _store(*records):
    store = RecordStore()
    for record in records:
        store.store(record.id, record)
    return store


def _full_game(**overrides):
    fields = dict(
        id="42",
        link="https://app.netconplay.com/games/42",
        title="Crónicas",
        system="D&D",
        description="Una aventura en la costa.",
        master_name="Ana",
        master_description="Narradora desde 2010.",
        start_date=datetime(2025, 3, 15, 20, 0, tzinfo=MADRID),
        duration_hours=4,
        security="Tarjeta X",
        sensible_content="Violencia",
        platform="Discord",
        channel="twitch.tv/netcon",
        streamed=True,
        initiation_game=False,
        max_players=6,
        registered_players=4,
    )
    fields.update(overrides)
    return GameRecord(**fields)


def test_sorted_ids_is_numeric_not_lexical():
    store = _store(GameRecord(id="10"), GameRecord(id="2"), GameRecord(id="30"))
    assert export_service.sorted_ids(store) == ["2", "10", "30"]


def test_non_numeric_ids_sort_as_zero_in_store_order():
    store = _store(GameRecord(id="5"), GameRecord(id="abc"), GameRecord(id="0"), GameRecord(id=""))
    assert export_service.sorted_ids(store) == ["abc", "0", "", "5"]


def test_tabular_rows_header_and_order():
    store = _store(GameRecord(id="3", title="Tres"), GameRecord(id="1", title="Uno"))

    rows = export_service.tabular_rows(store)

    assert rows[0] == export_service.GAMES_HEADER
    assert len(rows[0]) == 18
    assert [row[0] for row in rows[1:]] == ["1", "3"]
    assert [row[1] for row in rows[1:]] == ["Uno", "Tres"]


def test_tabular_row_columns():
    row = export_service.tabular_row(_full_game())

    assert len(row) == 18
    assert row == [
        "42", "Crónicas", "D&D", "Una aventura en la costa.", "Ana", "Narradora desde 2010.",
        "2025-03-15T20:00:00+01:00", "4", "2025-03-16T00:00:00+01:00", "Tarjeta X", "Violencia",
        "Discord", "twitch.tv/netcon", True, False, 6, 4, False,
    ]


def test_calendar_title_marks():
    assert export_service.calendar_title(_full_game()) == "✨ [2/6] Crónicas 🎥"
    assert (
        export_service.calendar_title(_full_game(registered_players=6, streamed=False))
        == "🔒 [0/6] Crónicas "
    )
    assert export_service.calendar_title(_full_game(registered_players=7)).startswith("🔒 [-1/6]")


def test_calendar_row_layout():
    row = export_service.calendar_row(_full_game())

    assert len(row) == 14
    assert row[0] == "TRUE"
    assert row[2:6] == ["2025-03-15", "2025-03-16", "20:00:00", "00:00:00"]
    assert row[6:11] == ["", "", "", "", ""]
    assert row[12] == ""
    assert row[13] == "Europe/Madrid"


def test_calendar_description():
    description = export_service.calendar_description(_full_game(streamed=False))
    lines = description.split("\n")

    assert lines[0] == "🔗 Enlace: https://app.netconplay.com/games/42"
    assert lines[1] == "👥 Plazas libres: 2/6"
    assert lines[2] == "🧙🏻 Organizadora: Ana"
    assert lines[3] == "🎲 Sistema: D&D"
    assert lines[4] == "🎥 Emitida: No"
    assert "Una aventura en la costa." in lines


def test_calendar_rows_for_unparsed_start_date():
    rows = export_service.calendar_rows(_store(GameRecord(id="1", title="Sin fecha")))

    assert rows[0] == export_service.CALENDAR_HEADER
    assert rows[1][2:6] == ["0001-01-01", "0001-01-01", "00:00:00", "00:00:00"]


def test_save_sheets_overwrite_fixed_ranges():
    client = FakeSheetsClient()
    store = _store(_full_game(), GameRecord(id="7", title="Otra"))

    assert export_service.save_games_sheet(store, client) == 2
    assert export_service.save_calendar_sheet(store, client) == 2

    [(games_range, games_rows), (calendar_range, calendar_rows)] = client.writes
    assert games_range == "Partidas!A:Z"
    assert calendar_range == "Calendario!B:T"
    assert [row[0] for row in games_rows[1:]] == ["7", "42"]
    assert len(calendar_rows) == 3


def test_save_propagates_export_errors():
    with pytest.raises(ExportError):
        export_service.save_games_sheet(_store(_full_game()), FakeSheetsClient(fail=True))


def test_sorted_records_follow_sorted_ids():
    store = _store(GameRecord(id="10"), GameRecord(id="x"), GameRecord(id="2"))
    assert [game.id for game in export_service.sorted_records(store)] == export_service.sorted_ids(store)


def test_calendar_row_end_time_across_clock_change():
    game = _full_game(start_date=datetime(2025, 3, 30, 1, 0, tzinfo=MADRID), duration_hours=3)
    row = export_service.calendar_row(game)
    assert row[2:6] == ["2025-03-30", "2025-03-30", "01:00:00", "05:00:00"]

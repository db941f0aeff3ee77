from collections import Counter

import httpx
import pytest

from services.exceptions import ExportError
from services.record_store import RecordStore
from workers.sync_worker import SyncWorker

LIST_PAGE = "https://app.netconplay.com/games?page=1"


def _card(game_id: str, title: str, system: str) -> str:
    return f"""
      <a href="/games/{game_id}">
        <p class="game_title">{title}</p>
        <p>{system}</p>
      </a>"""


def _detail(title: str, max_players: int, registered: int, streamed: str = "No") -> str:
    return f"""
    <div class="panel-body">
      <h3>{title}</h3>
      <div>
        <p><strong>Directora</strong>: Ana</p>
        <p>Descripción de {title}.</p>
        <p><strong>Seguridad</strong>: Líneas y velos</p>
        <p><strong>Contenido sensible</strong>: Ninguno</p>
        <p><strong>Sistema</strong>: D&amp;D</p>
        <p><strong>Plataforma</strong>: Discord</p>
        <p><strong>Fecha</strong>: Sábado 15 marzo 2025 20:00</p>
        <p><strong>Duración</strong>: 3 horas</p>
        <p><strong>Emitida</strong>: {streamed}</p>
        <p><strong>Partida de iniciación</strong>: Si</p>
        <p><strong>Número Máximo de Jugadoras</strong>: {max_players}</p>
        <p><strong>Número de jugadoras registradas</strong>: {registered}</p>
      </div>
    </div>"""


SITE = {
    "/games?page=1": f"""
      <div class="games">{_card("10", "Diez", "D&amp;D")}{_card("2", "Dos", "Fate")}</div>
      <ul class="pagination"><li><a href="/games?page=2">2</a></li></ul>
    """,
    "/games?page=2": f"""
      <div class="games">{_card("30", "Treinta", "Cthulhu")}</div>
      <ul class="pagination"><li><a href="/games?page=1">1</a></li></ul>
    """,
    "/games/10": _detail("Diez", 5, 5),
    "/games/2": _detail("Dos", 6, 4, streamed="Si"),
}


class FakeSheetsClient:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.writes = {}

    def update_range(self, range_name, rows):
        if self.fail:
            raise ExportError("Sheets API returned HTTP 500")
        self.writes[range_name] = rows
        return {}


def _transport(requests: Counter) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        key = request.url.raw_path.decode()
        requests[key] += 1
        if key not in SITE:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=SITE[key])

    return httpx.MockTransport(handler)


def _worker(requests: Counter, client: FakeSheetsClient, status=None) -> SyncWorker:
    return SyncWorker(
        RecordStore(),
        sheets_client=client,
        status=status,
        transport=_transport(requests),
        list_page=LIST_PAGE,
    )


def test_listing_pass_seeds_identity_records():
    worker = _worker(Counter(), FakeSheetsClient())
    worker.crawl_listing()

    assert worker.store.size() == 3
    game = worker.store.load("30")
    assert (game.title, game.system, game.link) == ("Treinta", "Cthulhu", "/games/30")
    assert game.max_players == 0


def test_run_crawls_both_passes_and_exports():
    requests = Counter()
    client = FakeSheetsClient()
    messages = []

    total = _worker(requests, client, status=messages.append).run()

    assert total == 3
    assert "Total games: 3" in messages
    assert requests["/games?page=1"] == 1
    assert requests["/games?page=2"] == 1
    assert requests["/games/2"] == 1

    games = client.writes["Partidas!A:Z"]
    assert [row[0] for row in games[1:]] == ["2", "10", "30"]
    two = games[1]
    assert two[15:18] == [6, 4, False]
    assert two[13] is True
    assert games[2][17] is True

    calendar = client.writes["Calendario!B:T"]
    assert len(calendar) == 4
    assert calendar[1][1] == "✨ [2/6] Dos 🎥"
    assert calendar[2][1] == "🔒 [0/5] Diez "


def test_failed_detail_page_keeps_listing_record():
    client = FakeSheetsClient()
    worker = _worker(Counter(), client)
    worker.run()

    game = worker.store.load("30")
    assert game.title == "Treinta"
    assert game.description == ""
    assert client.writes["Partidas!A:Z"][3][0] == "30"


def test_export_failure_is_fatal():
    with pytest.raises(ExportError):
        _worker(Counter(), FakeSheetsClient(fail=True)).run()

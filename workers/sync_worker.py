"""
workers/sync_worker.py – Orchestrates the listing crawl → detail crawl → export pipeline.

Status contract
---------------
  status(str) : Human-readable progress line, called from the calling thread.

The listing crawl must finish before any detail page is requested, and every
detail page must be processed before anything is exported. Fetch failures
only lose the affected page; an export failure raises ExportError.
"""

import logging
from typing import Callable, Optional
from urllib.parse import urljoin

import httpx

from services import detail_parser, export_service, list_parser
from services.crawl_service import Collector
from services.exceptions import CrawlError
from services.record_store import RecordStore
from services.sheets_service import SheetsClient

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

ALLOWED_DOMAINS = (
    "netconplay.com",
    "app.netconplay.com",
    "www.netconplay.com",
    "*.netconplay.com",
)

LIST_PARALLELISM: int = 5
DETAIL_PARALLELISM: int = 10

StatusCallback = Callable[[str], None]


class SyncWorker:
    """
    Runs the full scrape-and-export pipeline.

    Instantiate, then call run().

    Parameters
    ----------
    store         : Record store shared by both crawl passes and the export.
    sheets_client : Destination spreadsheet; built from the key file if omitted.
    status        : Progress callback; defaults to logging at INFO.
    transport     : Optional httpx transport handed to both collectors.
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        *,
        sheets_client: Optional[SheetsClient] = None,
        status: Optional[StatusCallback] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        list_page: str = list_parser.LIST_PAGE,
    ) -> None:
        self.store = store if store is not None else RecordStore()
        self._sheets_client = sheets_client
        self._status = status or logger.info
        self._transport = transport
        self._list_page = list_page

    def run(self) -> int:
        """
        Crawl both passes and export both views.

        Returns the number of games gathered.

        Raises
        ------
        ExportError
            When either sheet cannot be written.
        """
        # ── 1. Listing pages ──────────────────────────────────────────────
        self._status(f"Crawling listing from: {self._list_page}")
        self.crawl_listing()
        self._status(f"Listing complete: {self.store.size()} games found.")

        # ── 2. Detail pages ───────────────────────────────────────────────
        self._status("Crawling game details…")
        self.crawl_details()

        total = self.store.size()
        self._status(f"Total games: {total}")

        # ── 3. Export ─────────────────────────────────────────────────────
        self.export()
        self._status("Done.")
        return total

    # ── Pipeline steps ────────────────────────────────────────────────────────

    def crawl_listing(self) -> None:
        collector = self._make_collector(LIST_PARALLELISM)
        list_parser.register(collector, self.store)
        collector.visit(self._list_page)
        collector.wait()

    def crawl_details(self) -> None:
        collector = self._make_collector(DETAIL_PARALLELISM)
        detail_parser.register(collector, self.store)

        def queue_detail(game_id: str, record) -> None:
            try:
                collector.visit(urljoin(self._list_page, record.link))
            except CrawlError as exc:
                logger.error("Game %s: %s", game_id, exc)

        self.store.for_each(queue_detail)
        collector.wait()

    def export(self) -> None:
        client = self._sheets_client or SheetsClient()
        self._status("Writing games sheet…")
        export_service.save_games_sheet(self.store, client)
        self._status("Writing calendar sheet…")
        export_service.save_calendar_sheet(self.store, client)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _make_collector(self, parallelism: int) -> Collector:
        collector = Collector(
            allowed_domains=ALLOWED_DOMAINS,
            parallelism=parallelism,
            transport=self._transport,
        )
        collector.on_error(_log_fetch_error)
        return collector


def _log_fetch_error(url: str, error: CrawlError) -> None:
    logger.error("Something went wrong: %s", error)

"""
services/crawl_service.py – Small callback-driven crawler on httpx + BeautifulSoup.

A Collector fetches queued URLs with bounded parallelism and, for every page,
calls the handlers registered with ``on_html`` once per element matching their
CSS selector. Handlers may queue further pages through ``MatchedElement.visit``;
``wait()`` returns only once the queue has fully drained.

Fetch errors are reported to the ``on_error`` handler and never abort the
crawl.
"""

import asyncio
import fnmatch
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Set, Tuple
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup, Tag

from services.exceptions import CrawlError

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

DEFAULT_USER_AGENT: str = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)

# HTTP timeout (seconds)
HTTP_TIMEOUT: float = 30.0

DEFAULT_PARALLELISM: int = 4


@dataclass
class MatchedElement:
    """
    One element matched by a registered selector.

    Attributes
    ----------
    tag       : The matched BeautifulSoup element.
    url       : Final URL of the page the element was found on.
    collector : Collector that fetched the page.
    """

    tag: Tag
    url: str
    collector: "Collector"

    def attr(self, name: str) -> str:
        value = self.tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return (value or "").strip()

    def visit(self, href: str) -> bool:
        """Queue *href*, resolved against the page URL."""
        return self.collector.visit(urljoin(self.url, href))


HTMLHandler = Callable[[MatchedElement], None]
ErrorHandler = Callable[[str, CrawlError], None]


class Collector:
    """
    Queue-driven crawler.

    Parameters
    ----------
    allowed_domains : Host names (``fnmatch`` globs allowed) the collector may
                      fetch. Empty means any host.
    parallelism     : Maximum number of requests in flight.
    user_agent      : Value of the User-Agent header.
    timeout         : Per-request timeout in seconds.
    transport       : Optional httpx transport, used by the tests.
    """

    def __init__(
        self,
        *,
        allowed_domains: Sequence[str] = (),
        parallelism: int = DEFAULT_PARALLELISM,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if parallelism < 1:
            raise ValueError("parallelism must be at least 1")
        self.allowed_domains = tuple(d.lower() for d in allowed_domains)
        self.parallelism = parallelism
        self.user_agent = user_agent
        self.timeout = float(timeout)
        self._transport = transport

        self._html_handlers: List[Tuple[str, HTMLHandler]] = []
        self._error_handlers: List[ErrorHandler] = []
        self._visited: Set[str] = set()
        self._pending: List[str] = []
        self._queue: Optional["asyncio.Queue[str]"] = None

    # ── Registration ──────────────────────────────────────────────────────────

    def on_html(self, selector: str, handler: HTMLHandler) -> None:
        self._html_handlers.append((selector, handler))

    def on_error(self, handler: ErrorHandler) -> None:
        self._error_handlers.append(handler)

    # ── Public API ────────────────────────────────────────────────────────────

    def visit(self, url: str) -> bool:
        """
        Queue *url* for fetching.

        Returns False when the URL was already queued or its host is not
        allowed.

        Raises
        ------
        CrawlError
            When *url* is not an absolute http(s) URL.
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise CrawlError(f"Cannot visit non-absolute URL: '{url}'")
        if not self._is_allowed(parsed.hostname):
            logger.debug("Skipping %s: domain not allowed", url)
            return False
        if url in self._visited:
            return False
        self._visited.add(url)

        if self._queue is not None:
            self._queue.put_nowait(url)
        else:
            self._pending.append(url)
        return True

    def wait(self) -> None:
        """Fetch every queued page, including pages queued meanwhile."""
        if not self._pending:
            return
        asyncio.run(self._drain())

    # ── Internals ─────────────────────────────────────────────────────────────

    def _is_allowed(self, host: str) -> bool:
        if not self.allowed_domains:
            return True
        host = host.lower()
        return any(fnmatch.fnmatchcase(host, pattern) for pattern in self.allowed_domains)

    async def _drain(self) -> None:
        queue: "asyncio.Queue[str]" = asyncio.Queue()
        self._queue = queue
        for url in self._pending:
            queue.put_nowait(url)
        self._pending = []

        headers = {"User-Agent": self.user_agent}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                workers = [
                    asyncio.create_task(self._worker(client, queue))
                    for _ in range(self.parallelism)
                ]
                await queue.join()
                for task in workers:
                    task.cancel()
                await asyncio.gather(*workers, return_exceptions=True)
        finally:
            self._queue = None

    async def _worker(self, client: httpx.AsyncClient, queue: "asyncio.Queue[str]") -> None:
        while True:
            url = await queue.get()
            try:
                await self._fetch(client, url)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected failure fetching %s", url)
                self._report_error(url, CrawlError(f"Unexpected failure fetching {url}: {exc}"))
            finally:
                queue.task_done()

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> None:
        logger.info("Visiting %s", url)
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._report_error(
                url,
                CrawlError(f"Server returned HTTP {exc.response.status_code} for URL: {url}"),
            )
            return
        except httpx.RequestError as exc:
            self._report_error(url, CrawlError(f"Network error fetching {url}: {exc}"))
            return

        page_url = str(response.url)
        logger.info("Visited %s", page_url)
        self._dispatch(response.text, page_url)

    def _dispatch(self, html: str, page_url: str) -> None:
        soup = BeautifulSoup(html, "html.parser")
        for selector, handler in self._html_handlers:
            for tag in soup.select(selector):
                try:
                    handler(MatchedElement(tag=tag, url=page_url, collector=self))
                except Exception:  # noqa: BLE001
                    # Handler failures are logged; the crawl carries on.
                    logger.exception("Handler for '%s' failed on %s", selector, page_url)

    def _report_error(self, url: str, error: CrawlError) -> None:
        if not self._error_handlers:
            logger.error("Something went wrong: %s", error)
            return
        for handler in self._error_handlers:
            try:
                handler(url, error)
            except Exception:  # noqa: BLE001
                logger.exception("Error handler failed for %s", url)

"""
main.py – netcon-metadata entry point.
Scrapes every NetCon game and publishes the games and calendar sheets.
"""

import logging
import sys

from services.exceptions import NetconError
from services.record_store import RecordStore
from workers.sync_worker import SyncWorker

logger = logging.getLogger("netcon")


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    worker = SyncWorker(RecordStore(), status=logger.info)
    try:
        worker.run()
    except NetconError as exc:
        logger.error("Run aborted: %s", exc)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()

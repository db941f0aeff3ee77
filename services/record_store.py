"""
services/record_store.py – Thread-safe map from game id to GameRecord.

Both crawl passes write into the same store: the listing pass seeds a record
per id and the detail pass replaces it with the enriched version. The store
is created by the caller and handed to every stage; there is no global
instance.
"""

import threading
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from models.game_record import GameRecord

RecordVisitor = Callable[[str, GameRecord], Optional[bool]]


class RecordStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, GameRecord] = {}

    def store(self, game_id: str, record: GameRecord) -> None:
        """Insert or replace the record kept under *game_id*."""
        with self._lock:
            self._records[game_id] = record

    def load(self, game_id: str) -> Optional[GameRecord]:
        with self._lock:
            return self._records.get(game_id)

    def snapshot(self) -> List[Tuple[str, GameRecord]]:
        """Copy of the (id, record) pairs in insertion order."""
        with self._lock:
            return list(self._records.items())

    def for_each(self, fn: RecordVisitor) -> None:
        """
        Call *fn(id, record)* for every entry of a snapshot.

        Writes made while iterating are not seen. Returning ``False`` from
        *fn* stops the iteration.
        """
        for game_id, record in self.snapshot():
            if fn(game_id, record) is False:
                break

    def size(self) -> int:
        with self._lock:
            return len(self._records)

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[str]:
        return iter([game_id for game_id, _ in self.snapshot()])

"""
models/game_record.py – Data model for a single NetCon game session.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

# Start date used when the detail page has no parseable date.
ZERO_TIMESTAMP: datetime = datetime(1, 1, 1, tzinfo=timezone.utc)


@dataclass
class GameRecord:
    """
    One game session, keyed by the id found in its URL.

    Records created by the listing pass only carry ``id``, ``link``, ``title``
    and ``system``; every other field keeps its zero value until the detail
    pass replaces the record.

    Attributes
    ----------
    id                 : Final path segment of the game URL.
    link               : URL of the detail page (relative when it came from
                         the listing).
    start_date         : Session start in the Europe/Madrid zone.
    duration_hours     : Session length; the source of ``end_date``.
    streamed           : The session is broadcast.
    initiation_game    : The session is marked as suitable for newcomers.
    max_players        : Seats offered.
    registered_players : Seats taken.
    """

    id: str
    link: str = ""
    background_image: str = ""
    title: str = ""
    system: str = ""
    description: str = ""
    master_name: str = ""
    master_description: str = ""
    start_date: datetime = ZERO_TIMESTAMP
    duration_hours: int = 0
    security: str = ""
    sensible_content: str = ""
    platform: str = ""
    channel: str = ""
    streamed: bool = False
    initiation_game: bool = False
    max_players: int = 0
    registered_players: int = 0

    @property
    def duration(self) -> str:
        return str(self.duration_hours)

    @property
    def end_date(self) -> datetime:
        """Start plus the elapsed duration, shown in the start date's zone."""
        elapsed = self.start_date.astimezone(timezone.utc) + timedelta(hours=self.duration_hours)
        return elapsed.astimezone(self.start_date.tzinfo)

    @property
    def completed(self) -> bool:
        return self.max_players == self.registered_players

    @property
    def free_seats(self) -> int:
        return self.max_players - self.registered_players

    @property
    def has_start_date(self) -> bool:
        return self.start_date != ZERO_TIMESTAMP

    def __str__(self) -> str:
        return f"#{self.id} {self.title} [{self.registered_players}/{self.max_players}]"

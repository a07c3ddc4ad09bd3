"""Date/time reconstruction across log lines."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from ..models.events import ClassifiedLine, LoginEvent

logger = logging.getLogger(__name__)

ROLLOVER_LATE_HOUR = 22
ROLLOVER_EARLY_HOUR = 5
DEFAULT_TIME_OF_DAY = "00:00:00"


def _hour(time_of_day: str) -> int:
    return int(time_of_day.split(":", 1)[0])


def _next_day(date_str: str) -> str:
    d = datetime.strptime(date_str, "%Y-%m-%d").date()
    return (d + timedelta(days=1)).isoformat()


def to_epoch_seconds(date_str: str, time_of_day: str) -> int:
    dt = datetime.strptime(f"{date_str} {time_of_day}", "%Y-%m-%d %H:%M:%S")
    return int(dt.replace(tzinfo=timezone.utc).timestamp())


class TemporalResolver:
    """Tracks the current date across lines and resolves absolute timestamps.

    Lines rarely repeat the date; a time-of-day going from >= 22h to <= 5h
    without an explicit date is taken as a midnight crossing. When no date was
    ever seen, `fallback_date` (wall clock at parse time) is used. That is an
    approximation and mis-dates old logs replayed later.
    """

    def __init__(
        self,
        *,
        current_date: Optional[str] = None,
        last_time_of_day: Optional[str] = None,
        fallback_date: Optional[date] = None,
    ):
        self.current_date = current_date
        self.last_time_of_day = last_time_of_day
        self.fallback_date = (fallback_date or datetime.now(timezone.utc).date()).isoformat()

    def observe(self, classified: ClassifiedLine) -> Optional[str]:
        """Fold one classified line into the date state.

        Returns the line's time-of-day (from the prefix or a login statement).
        """
        explicit_date = classified.date
        time_of_day = classified.time
        event = classified.event
        if isinstance(event, LoginEvent):
            explicit_date = event.date
            time_of_day = event.time

        if classified.date is not None:
            self.current_date = classified.date
        elif (
            time_of_day is not None
            and self.last_time_of_day is not None
            and self.current_date is not None
            and _hour(self.last_time_of_day) >= ROLLOVER_LATE_HOUR
            and _hour(time_of_day) <= ROLLOVER_EARLY_HOUR
        ):
            self.current_date = _next_day(self.current_date)
            logger.debug(f"Date rollover detected at {time_of_day}, advanced to {self.current_date}")

        if explicit_date is not None:
            self.current_date = explicit_date

        if time_of_day is not None:
            self.last_time_of_day = time_of_day
        return time_of_day

    def resolve(self, time_of_day: Optional[str]) -> int:
        """Absolute UTC epoch seconds for a time on the current date."""
        date_str = self.current_date or self.fallback_date
        return to_epoch_seconds(date_str, time_of_day or DEFAULT_TIME_OF_DAY)

"""Incremental continuation state: temporal + session state between chunks."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..models.context import ParseContext
from .correlator import SessionCorrelator
from .temporal import TemporalResolver

logger = logging.getLogger(__name__)


class ParserState:
    """Mutable per-stream parse state.

    Not shared between streams. Call `reset()` before parsing an unrelated
    file or character, otherwise stale sessions and the previous character
    leak into the new data.
    """

    def __init__(self, context: Optional[ParseContext] = None, *, fallback_date: Optional[date] = None):
        self.fallback_date = fallback_date
        self.resume(context or ParseContext())

    def resume(self, context: ParseContext) -> None:
        ctx = context.model_copy(deep=True)
        self.character: Optional[str] = ctx.last_known_character
        self.line_offset = ctx.line_offset
        self.temporal = TemporalResolver(
            current_date=ctx.last_known_date,
            last_time_of_day=ctx.last_known_time_of_day,
            fallback_date=self.fallback_date,
        )
        self.correlator = SessionCorrelator(
            vendor_sessions=ctx.vendor_sessions,
            open_session_id=ctx.open_session_id,
            pending_interactions=ctx.pending_interactions,
        )
        self._resumed_date = ctx.last_known_date

    def snapshot(self) -> ParseContext:
        last_date = self.temporal.current_date
        if last_date is not None and self._resumed_date is not None and last_date < self._resumed_date:
            # stream went backwards in time; keep the later date for continuity
            logger.warning(f"Ignoring earlier date {last_date} (last known {self._resumed_date})")
            last_date = self._resumed_date
        ctx = ParseContext(
            last_known_character=self.character,
            last_known_date=last_date or self._resumed_date,
            last_known_time_of_day=self.temporal.last_time_of_day,
            open_session_id=self.correlator.open_session_id,
            vendor_sessions=self.correlator.vendor_sessions,
            pending_interactions=self.correlator.pending_interactions(),
            line_offset=self.line_offset,
        )
        return ctx.model_copy(deep=True)

    def reset(self) -> None:
        self.resume(ParseContext())
        logger.info("Parser state reset")

"""Ingestion coordinator: parse a chunk, deduplicate, write to the store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Optional

from ..models.context import ParseContext
from ..models.events import (
    BalanceUpdateEvent,
    InteractionStartEvent,
    LoginEvent,
    RawLine,
    VendorScreenEvent,
)
from ..models.records import LogEntry, Transaction, VendorSession, character_key
from ..parsing.classifier import MalformedLineError, classify_line
from ..parsing.deriver import derive_transaction
from ..parsing.state import ParserState
from .store import LogStore

logger = logging.getLogger(__name__)


@dataclass
class ChunkResult:
    written: int
    skipped_duplicates: int
    character: Optional[str]
    sessions_touched: int
    transactions: list[Transaction] = field(default_factory=list)
    malformed: int = 0
    unmatched_updates: int = 0
    dry_run: bool = False


@dataclass
class _LineOutcome:
    entry: LogEntry
    transaction: Optional[Transaction] = None
    session: Optional[VendorSession] = None


# returned for balance updates that match no vendor session
_UNMATCHED = object()


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _session_payload(session: VendorSession) -> dict:
    return {
        "session_id": session.session_id,
        "npc_name": session.npc_name,
        "balance": session.balance,
        "reset_timer": session.reset_timer,
        "max_balance": session.max_balance,
    }


class LogIngestor:
    """Turns player.log text into deduplicated store records.

    Holds one stream's continuation state. Lines are processed strictly in
    document order. Independent streams need independent instances.
    """

    def __init__(
        self,
        store: LogStore,
        *,
        context: Optional[ParseContext] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.store = store
        self._today = today or _utc_today
        self.state = ParserState(context)

    def reset_context(self) -> None:
        self.state.reset()

    def snapshot_context(self) -> ParseContext:
        return self.state.snapshot()

    def resume_context(self, context: ParseContext) -> None:
        self.state.resume(context)

    def process_chunk(
        self,
        content: str,
        source_id: str,
        is_incremental: bool = False,
        *,
        skip_dedup: bool = False,
        dry_run: bool = False,
    ) -> ChunkResult:
        """Parse `content` and persist new records.

        Re-processing the same content writes nothing. Store errors propagate
        unchanged and leave the continuation state as it was before the call.
        """
        working = ParserState(self.state.snapshot(), fallback_date=self._today())
        lines = content.splitlines()
        base = working.line_offset if is_incremental else 0

        outcomes: list[_LineOutcome] = []
        malformed = 0
        unmatched = 0
        for idx, text in enumerate(lines, start=1):
            raw = RawLine(text=text, line_number=base + idx, source_id=source_id)
            try:
                outcome = self._process_line(working, raw)
            except MalformedLineError as e:
                malformed += 1
                logger.warning(f"Skipping malformed line {raw.source_id}:{raw.line_number}: {e}")
                continue
            if outcome is None:
                continue
            if outcome is _UNMATCHED:
                unmatched += 1
                continue
            outcomes.append(outcome)

        if is_incremental:
            working.line_offset = base + len(lines)

        if skip_dedup or not outcomes:
            existing = set()
        else:
            existing = self.store.existing_keys(o.entry.natural_key for o in outcomes)
        fresh = [o for o in outcomes if o.entry.natural_key not in existing]

        transactions = [o.transaction for o in fresh if o.transaction is not None]
        sessions: dict[tuple[str, int, str], VendorSession] = {}
        for o in fresh:
            if o.session is not None:
                s = o.session
                sessions[(character_key(s.character), s.session_id, s.npc_name)] = s

        if dry_run:
            written = len(fresh)
        elif fresh:
            written = self.store.write_batch(
                [o.entry for o in fresh],
                transactions,
                sessions.values(),
            )
        else:
            written = 0

        if not dry_run:
            self.state.resume(working.snapshot())

        result = ChunkResult(
            written=written,
            skipped_duplicates=len(outcomes) - written,
            character=working.character,
            sessions_touched=len(sessions),
            transactions=transactions,
            malformed=malformed,
            unmatched_updates=unmatched,
            dry_run=dry_run,
        )
        logger.info(
            f"Processed {source_id}: {len(lines)} lines, {result.written} written, "
            f"{result.skipped_duplicates} duplicates, {len(transactions)} transactions"
        )
        if unmatched:
            logger.warning(f"{unmatched} balance update(s) in {source_id} matched no vendor session")
        return result

    def _process_line(self, state: ParserState, raw: RawLine):
        classified = classify_line(raw.text)
        if classified.is_empty:
            return None
        time_of_day = state.temporal.observe(classified)
        event = classified.event
        if event is None:
            return None
        epoch_seconds = state.temporal.resolve(time_of_day)

        def entry(kind: str, payload: dict) -> LogEntry:
            return LogEntry(
                source_id=raw.source_id,
                line_number=raw.line_number,
                epoch_seconds=epoch_seconds,
                character=state.character,
                event_kind=kind,
                payload=payload,
            )

        if isinstance(event, LoginEvent):
            state.character = event.character
            logger.info(f"Login: {event.character} on {event.date} at {event.time} UTC")
            return _LineOutcome(entry("login", {"date": event.date, "time": event.time}))

        if isinstance(event, InteractionStartEvent):
            state.correlator.start_interaction(event, state.character)
            return _LineOutcome(
                entry(
                    "interaction_start",
                    {
                        "session_id": event.session_id,
                        "npc_name": event.npc_name,
                        "favor_value": event.favor_value,
                        "flag": event.flag,
                    },
                )
            )

        if isinstance(event, VendorScreenEvent):
            session = state.correlator.open_vendor_screen(event, state.character)
            payload = _session_payload(session)
            payload.update(favor_value=session.favor_value, favor_label=session.favor_label)
            return _LineOutcome(entry("vendor_screen", payload), session=session.model_copy())

        if isinstance(event, BalanceUpdateEvent):
            session = state.correlator.match_balance_update(event, state.character)
            if session is None:
                return _UNMATCHED
            balance_before = session.balance
            transaction = derive_transaction(
                session,
                event,
                character=state.character,
                epoch_seconds=epoch_seconds,
                line_number=raw.line_number,
            )
            payload = _session_payload(session)
            payload.update(balance_before=balance_before, balance_after=event.balance)
            if transaction is not None:
                payload["amount"] = transaction.amount
            return _LineOutcome(
                entry("vendor_balance", payload),
                transaction=transaction,
                session=session.model_copy(),
            )

        return None


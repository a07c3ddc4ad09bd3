"""Vendor session tracking and balance-update correlation."""

from __future__ import annotations

import logging
from typing import Optional

from ..models.context import PendingInteraction
from ..models.events import BalanceUpdateEvent, InteractionStartEvent, VendorScreenEvent
from ..models.records import VendorSession

logger = logging.getLogger(__name__)


def unknown_npc_name(session_id: int) -> str:
    return f"unknown_{session_id}"


class SessionCorrelator:
    """Holds open/recent vendor sessions and resolves balance updates to them.

    Balance-update lines carry no session id. They are matched first against the
    currently open vendor window, then by a structural fingerprint: same max
    balance, same character, different stored balance. Two vendors open at once
    with an identical max balance will be mismatched; the log format gives
    nothing better to go on.
    """

    def __init__(
        self,
        *,
        vendor_sessions: Optional[dict[int, VendorSession]] = None,
        open_session_id: Optional[int] = None,
        pending_interactions: Optional[list[PendingInteraction]] = None,
    ):
        self.vendor_sessions: dict[int, VendorSession] = dict(vendor_sessions or {})
        self.open_session_id = open_session_id
        self.pending: dict[tuple[Optional[str], int], PendingInteraction] = {}
        for p in pending_interactions or []:
            self.pending[(p.character, p.session_id)] = p

    def pending_interactions(self) -> list[PendingInteraction]:
        return list(self.pending.values())

    def start_interaction(self, event: InteractionStartEvent, character: Optional[str]) -> None:
        if self.open_session_id is not None:
            logger.debug(f"Closing vendor window {self.open_session_id} (new interaction started)")
            self.open_session_id = None
        # a new interaction supersedes any earlier one by the same character
        for key in [k for k in self.pending if k[0] == character]:
            del self.pending[key]
        self.pending[(character, event.session_id)] = PendingInteraction(
            character=character,
            session_id=event.session_id,
            npc_name=event.npc_name,
            favor_value=event.favor_value,
            time=event.time,
        )

    def open_vendor_screen(self, event: VendorScreenEvent, character: Optional[str]) -> VendorSession:
        interaction = self.pending.pop((character, event.session_id), None)
        known = self.vendor_sessions.get(event.session_id)
        if interaction is not None:
            npc_name = interaction.npc_name
            favor_value = interaction.favor_value
        elif known is not None and known.character == character:
            # screen refreshed without a new interaction line
            npc_name = known.npc_name
            favor_value = known.favor_value
        else:
            npc_name = unknown_npc_name(event.session_id)
            favor_value = 0.0

        session = VendorSession(
            session_id=event.session_id,
            npc_name=npc_name,
            character=character,
            favor_value=favor_value,
            favor_label=event.favor_label,
            balance=event.balance,
            reset_timer=event.reset_timer,
            max_balance=event.max_balance,
            last_seen_time=event.time,
        )
        self.vendor_sessions[event.session_id] = session
        self.open_session_id = event.session_id
        logger.debug(
            f"Vendor session opened: id={event.session_id} npc={npc_name} "
            f"balance={event.balance} max={event.max_balance}"
        )
        return session

    def match_balance_update(
        self, event: BalanceUpdateEvent, character: Optional[str]
    ) -> Optional[VendorSession]:
        """Find the session a balance update belongs to, or None."""
        if self.open_session_id is not None:
            session = self.vendor_sessions.get(self.open_session_id)
            if session is not None and session.balance != event.balance:
                return session

        for session in self.vendor_sessions.values():
            if (
                session.max_balance == event.max_balance
                and session.character == character
                and session.balance != event.balance
            ):
                return session

        logger.debug(
            f"Unmatched balance update: balance={event.balance} max={event.max_balance} "
            f"open={self.open_session_id}"
        )
        return None

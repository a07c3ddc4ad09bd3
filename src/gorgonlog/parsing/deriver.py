"""Derive sale transactions from consecutive vendor balance observations."""

from __future__ import annotations

from typing import Optional

from ..models.events import BalanceUpdateEvent
from ..models.records import Transaction, VendorSession


def derive_transaction(
    session: VendorSession,
    update: BalanceUpdateEvent,
    *,
    character: Optional[str],
    epoch_seconds: int,
    line_number: int,
) -> Optional[Transaction]:
    """Apply a matched balance update to its session.

    A decrease is a player sale and yields a Transaction. An increase (restock)
    or no change yields nothing. The session always takes the new balance and
    reset timer. Without a character the sale cannot be attributed and is
    dropped.
    """
    balance_before = session.balance
    amount = balance_before - update.balance

    session.balance = update.balance
    session.reset_timer = update.reset_timer
    session.last_seen_time = update.time

    if amount <= 0 or not character:
        return None
    return Transaction(
        character=character,
        npc_name=session.npc_name,
        session_id=session.session_id,
        amount=amount,
        epoch_seconds=epoch_seconds,
        balance_before=balance_before,
        balance_after=update.balance,
        line_number=line_number,
    )

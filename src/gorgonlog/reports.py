"""Read-side summaries over the log store."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from .ingest.store import LogStore
from .models.records import LogEntry, Transaction


@dataclass
class TransactionSummary:
    character: str
    total_count: int
    total_amount: int
    daily_sales: dict[str, int] = field(default_factory=dict)
    vendor_sales: dict[str, int] = field(default_factory=dict)
    transactions: list[Transaction] = field(default_factory=list)


def transaction_summary(
    store: LogStore,
    character: str,
    *,
    start: Optional[int] = None,
    end: Optional[int] = None,
) -> TransactionSummary:
    """Total sales for a character, grouped by UTC day and by vendor."""
    transactions = store.transactions_for_character(character, start=start, end=end)
    daily: dict[str, int] = defaultdict(int)
    vendors: dict[str, int] = defaultdict(int)
    for t in transactions:
        daily[t.timestamp.strftime("%Y-%m-%d")] += t.amount
        vendors[t.npc_name] += t.amount
    return TransactionSummary(
        character=character,
        total_count=len(transactions),
        total_amount=sum(t.amount for t in transactions),
        daily_sales=dict(sorted(daily.items())),
        vendor_sales=dict(sorted(vendors.items(), key=lambda kv: (-kv[1], kv[0]))),
        transactions=transactions,
    )


def latest_vendor_balances(store: LogStore, character: str) -> dict[str, LogEntry]:
    """Most recent balance observation (screen or update) per NPC."""
    latest: dict[str, LogEntry] = {}
    for kind in ("vendor_screen", "vendor_balance"):
        for entry in store.entries_for_character(character, kind=kind):
            npc = str(entry.payload.get("npc_name", ""))
            current = latest.get(npc)
            if current is None or (entry.epoch_seconds, entry.line_number) >= (
                current.epoch_seconds,
                current.line_number,
            ):
                latest[npc] = entry
    return dict(sorted(latest.items()))

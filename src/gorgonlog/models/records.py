"""Pydantic models for persisted ingestion records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

EventKind = Literal["login", "interaction_start", "vendor_screen", "vendor_balance"]

# (epoch_seconds, character, line_number); unknown character is ""
NaturalKey = tuple[int, str, int]


def character_key(character: Optional[str]) -> str:
    return character or ""


class LogEntry(BaseModel):
    """One classified log line.

    Never mutated after creation. Deduplicated on `natural_key`.
    """

    source_id: str
    line_number: int
    epoch_seconds: int
    character: Optional[str] = None
    event_kind: EventKind
    payload: dict = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def natural_key(self) -> NaturalKey:
        return (self.epoch_seconds, character_key(self.character), self.line_number)

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.epoch_seconds, tz=timezone.utc)


class Transaction(BaseModel):
    """A sale derived from a vendor balance decrease."""

    character: str
    npc_name: str
    session_id: int
    amount: int = Field(gt=0)
    epoch_seconds: int
    balance_before: int
    balance_after: int
    line_number: int = 0

    model_config = {"frozen": True}

    @property
    def entry_key(self) -> NaturalKey:
        return (self.epoch_seconds, self.character, self.line_number)

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.epoch_seconds, tz=timezone.utc)


class VendorSession(BaseModel):
    """Most recent known state of one vendor interaction window."""

    session_id: int
    npc_name: str
    character: Optional[str] = None
    favor_value: float = 0.0
    favor_label: str = ""
    balance: int
    reset_timer: int
    max_balance: int
    last_seen_time: Optional[str] = None

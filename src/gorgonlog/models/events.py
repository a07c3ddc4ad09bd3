"""Typed events produced by the line classifier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class RawLine:
    text: str
    line_number: int
    source_id: str


@dataclass(frozen=True)
class LoginEvent:
    character: str
    date: str  # YYYY-MM-DD (UTC)
    time: str  # HH:MM:SS (UTC)


@dataclass(frozen=True)
class InteractionStartEvent:
    session_id: int
    npc_name: str
    favor_value: float
    flag: str
    time: Optional[str] = None


@dataclass(frozen=True)
class VendorScreenEvent:
    session_id: int
    favor_label: str
    balance: int
    reset_timer: int
    max_balance: int
    time: Optional[str] = None


@dataclass(frozen=True)
class BalanceUpdateEvent:
    balance: int
    reset_timer: int
    max_balance: int
    time: Optional[str] = None


ParsedEvent = Union[LoginEvent, InteractionStartEvent, VendorScreenEvent, BalanceUpdateEvent]


@dataclass(frozen=True)
class ClassifiedLine:
    """Result of classifying one line.

    `date` is only set when the line carried a bracketed date prefix;
    `time` when it carried a bracketed time-of-day.
    """

    date: Optional[str] = None
    time: Optional[str] = None
    event: Optional[ParsedEvent] = None

    @property
    def is_empty(self) -> bool:
        return self.date is None and self.time is None and self.event is None

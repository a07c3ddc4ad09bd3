"""Models for gorgonlog."""

from .context import ParseContext, PendingInteraction
from .events import (
    BalanceUpdateEvent,
    ClassifiedLine,
    InteractionStartEvent,
    LoginEvent,
    ParsedEvent,
    RawLine,
    VendorScreenEvent,
)
from .records import EventKind, LogEntry, NaturalKey, Transaction, VendorSession, character_key

__all__ = [
    # Events
    "RawLine",
    "ClassifiedLine",
    "ParsedEvent",
    "LoginEvent",
    "InteractionStartEvent",
    "VendorScreenEvent",
    "BalanceUpdateEvent",
    # Records
    "EventKind",
    "NaturalKey",
    "LogEntry",
    "Transaction",
    "VendorSession",
    "character_key",
    # Continuation
    "ParseContext",
    "PendingInteraction",
]

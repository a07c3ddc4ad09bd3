"""Stateless line classifier for player.log content."""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Optional

from ..models.events import (
    BalanceUpdateEvent,
    ClassifiedLine,
    InteractionStartEvent,
    LoginEvent,
    ParsedEvent,
    VendorScreenEvent,
)


# Largest value a SQLite INTEGER column holds.
MAX_INT_FIELD = 2**63 - 1


class MalformedLineError(ValueError):
    """A line matched a known statement but a field failed to parse."""

    def __init__(self, message: str, line: str):
        super().__init__(message)
        self.line = line


# Bracketed prefixes, checked in priority order.
_FULL_DATETIME_RE = re.compile(r"^\[(\d{4}-\d{2}-\d{2})\s+(\d{2}:\d{2}:\d{2})\]")
_DATE_RE = re.compile(r"^\[(\d{4}-\d{2}-\d{2})\s+")
_TIME_RE = re.compile(r"^\[(\d{2}:\d{2}:\d{2})\]")

_LOGIN_RE = re.compile(
    r"Logged in as character\s+(\S+)\.\s+Time UTC=(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{2}:\d{2}:\d{2})"
)
# (session_id, unused, favor, flag, npc_name, ...)
_START_RE = re.compile(
    r"ProcessStartInteraction\(\s*(\d+)\s*,\s*([^,]+?)\s*,\s*([0-9.]+)\s*,\s*([^,]+?)\s*,\s*([^,)\s]+)\s*[,)]"
)
# (session_id, favor_label, balance, reset_timer, max_balance, ...)
_VENDOR_SCREEN_RE = re.compile(
    r"ProcessVendorScreen\(\s*(\d+)\s*,\s*([^,]+?)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*[,)]"
)
# (balance, reset_timer, max_balance, ...)
_BALANCE_UPDATE_RE = re.compile(
    r"ProcessVendorUpdateAvailableGold\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*[,)]"
)


def _check_date(value: str, line: str) -> str:
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise MalformedLineError(f"Invalid date '{value}'", line)
    return value


def _check_time(value: str, line: str) -> str:
    try:
        datetime.strptime(value, "%H:%M:%S")
    except ValueError:
        raise MalformedLineError(f"Invalid time '{value}'", line)
    return value


def _to_float(value: str, line: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise MalformedLineError(f"Invalid number '{value}'", line)
    if not math.isfinite(number):
        raise MalformedLineError(f"Number out of range '{value}'", line)
    return number


def _to_int(value: str, line: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise MalformedLineError(f"Invalid number '{value}'", line)
    if number > MAX_INT_FIELD:
        raise MalformedLineError(f"Number out of range '{value}'", line)
    return number


def _match_prefix(line: str) -> tuple[Optional[str], Optional[str]]:
    m = _FULL_DATETIME_RE.match(line)
    if m:
        return _check_date(m.group(1), line), _check_time(m.group(2), line)
    m = _DATE_RE.match(line)
    if m:
        return _check_date(m.group(1), line), None
    m = _TIME_RE.match(line)
    if m:
        return None, _check_time(m.group(1), line)
    return None, None


def _match_event(line: str, time: Optional[str]) -> Optional[ParsedEvent]:
    m = _LOGIN_RE.search(line)
    if m:
        month, day, year = m.group(2), m.group(3), m.group(4)
        date_str = _check_date(f"{year}-{int(month):02d}-{int(day):02d}", line)
        return LoginEvent(character=m.group(1), date=date_str, time=_check_time(m.group(5), line))

    m = _START_RE.search(line)
    if m:
        return InteractionStartEvent(
            session_id=_to_int(m.group(1), line),
            favor_value=_to_float(m.group(3), line),
            flag=m.group(4).strip(),
            npc_name=m.group(5).strip(),
            time=time,
        )

    m = _VENDOR_SCREEN_RE.search(line)
    if m:
        return VendorScreenEvent(
            session_id=_to_int(m.group(1), line),
            favor_label=m.group(2).strip(),
            balance=_to_int(m.group(3), line),
            reset_timer=_to_int(m.group(4), line),
            max_balance=_to_int(m.group(5), line),
            time=time,
        )

    m = _BALANCE_UPDATE_RE.search(line)
    if m:
        return BalanceUpdateEvent(
            balance=_to_int(m.group(1), line),
            reset_timer=_to_int(m.group(2), line),
            max_balance=_to_int(m.group(3), line),
            time=time,
        )

    return None


def classify_line(line: str) -> ClassifiedLine:
    """Classify a single log line.

    Returns an empty ClassifiedLine for lines that match nothing.

    Raises:
        MalformedLineError: If a recognized line has unparseable fields
    """
    if not line or not line.strip():
        return ClassifiedLine()
    date, time = _match_prefix(line)
    event = _match_event(line, time)
    return ClassifiedLine(date=date, time=time, event=event)

"""Tests for the line classifier."""

import pytest

from gorgonlog.models.events import (
    BalanceUpdateEvent,
    InteractionStartEvent,
    LoginEvent,
    VendorScreenEvent,
)
from gorgonlog.parsing.classifier import MalformedLineError, classify_line


def test_login_line_carries_utc_date_and_time():
    c = classify_line(
        "[2025-12-10 15:30:00] LocalPlayer: Logged in as character TestChar. Time UTC=12/10/2025 15:31:02"
    )
    assert c.date == "2025-12-10"
    assert c.time == "15:30:00"
    assert c.event == LoginEvent(character="TestChar", date="2025-12-10", time="15:31:02")


def test_login_single_digit_month_and_day_are_padded():
    c = classify_line("LocalPlayer: Logged in as character Bob. Time UTC=1/2/2026 01:02:03")
    assert isinstance(c.event, LoginEvent)
    assert c.event.date == "2026-01-02"
    assert c.date is None


def test_interaction_start_fields():
    c = classify_line("[18:10:15] LocalPlayer: ProcessStartInteraction(22717, 7, 3032.843, True, NPC_Ragabir, )")
    assert c.time == "18:10:15"
    assert c.event == InteractionStartEvent(
        session_id=22717,
        npc_name="NPC_Ragabir",
        favor_value=3032.843,
        flag="True",
        time="18:10:15",
    )


def test_vendor_screen_tolerates_trailing_fields():
    c = classify_line(
        "[18:13:12] LocalPlayer: ProcessVendorScreen(22717, SoulMates, 57334, 1764962987140, 60000, "
        "Welcome!, VendorInfo[], VendorPurchaseCap[], System.String[], -1601, )"
    )
    assert c.event == VendorScreenEvent(
        session_id=22717,
        favor_label="SoulMates",
        balance=57334,
        reset_timer=1764962987140,
        max_balance=60000,
        time="18:13:12",
    )


def test_balance_update_without_trailing_comma():
    c = classify_line("[18:16:00] LocalPlayer: ProcessVendorUpdateAvailableGold(57184, 1764962987140, 60000)")
    assert c.event == BalanceUpdateEvent(
        balance=57184, reset_timer=1764962987140, max_balance=60000, time="18:16:00"
    )


def test_prefix_priority_full_then_date_then_time():
    full = classify_line("[2025-01-01 23:58:00] something")
    assert (full.date, full.time, full.event) == ("2025-01-01", "23:58:00", None)

    date_only = classify_line("[2025-01-01 boot] something")
    assert (date_only.date, date_only.time) == ("2025-01-01", None)

    time_only = classify_line("[07:00:01] something")
    assert (time_only.date, time_only.time) == (None, "07:00:01")


def test_unrecognized_and_blank_lines_are_empty():
    assert classify_line("").is_empty
    assert classify_line("   ").is_empty
    assert classify_line("LocalPlayer: You received 150 councils").is_empty


def test_malformed_favor_raises():
    with pytest.raises(MalformedLineError):
        classify_line("[10:00:00] ProcessStartInteraction(5, 0, 1.2.3, True, NPC_X, )")


def test_malformed_date_prefix_raises():
    with pytest.raises(MalformedLineError) as exc:
        classify_line("[2025-13-40 10:00:00] ProcessVendorScreen(1, Friends, 10, 0, 20, )")
    assert "2025-13-40" in str(exc.value)
    assert exc.value.line.startswith("[2025-13-40")


def test_malformed_login_date_raises():
    with pytest.raises(MalformedLineError):
        classify_line("Logged in as character Bob. Time UTC=02/31/2025 10:00:00")


def test_integer_field_beyond_storage_range_raises():
    with pytest.raises(MalformedLineError) as exc:
        classify_line("[10:00:00] ProcessVendorScreen(1, Friends, 100, 99999999999999999999999, 500, )")
    assert "out of range" in str(exc.value)


def test_largest_storable_integer_is_accepted():
    c = classify_line(f"ProcessVendorUpdateAvailableGold(5, {2**63 - 1}, 500, )")
    assert c.event.reset_timer == 2**63 - 1


def test_infinite_favor_raises():
    with pytest.raises(MalformedLineError):
        classify_line("ProcessStartInteraction(5, 0, " + "9" * 400 + ", True, NPC_X, )")

"""Tests for sales and vendor reports."""

from gorgonlog.reports import latest_vendor_balances, transaction_summary


LOG = "\n".join(
    [
        "[2025-01-01 09:00:00] LocalPlayer: Logged in as character Tester. Time UTC=01/01/2025 09:00:00",
        "[2025-01-01 10:00:00] ProcessStartInteraction(1, 0, 10.0, True, NPC_A, )",
        "[2025-01-01 10:00:01] ProcessVendorScreen(1, Friends, 500, 0, 1000, )",
        "[2025-01-01 10:00:02] ProcessVendorUpdateAvailableGold(450, 0, 1000, )",
        "[2025-01-01 10:05:00] ProcessStartInteraction(2, 0, 10.0, True, NPC_B, )",
        "[2025-01-01 10:05:01] ProcessVendorScreen(2, Friends, 300, 0, 600, )",
        "[2025-01-01 10:05:02] ProcessVendorUpdateAvailableGold(200, 0, 600, )",
        "[2025-01-02 11:00:00] ProcessStartInteraction(1, 0, 10.0, True, NPC_A, )",
        "[2025-01-02 11:00:01] ProcessVendorScreen(1, Friends, 1000, 0, 1000, )",
        "[2025-01-02 11:00:02] ProcessVendorUpdateAvailableGold(980, 0, 1000, )",
    ]
)


def test_transaction_summary_groups_by_day_and_vendor(ingestor, store):
    ingestor.process_chunk(LOG, "a.log")
    summary = transaction_summary(store, "Tester")

    assert summary.total_count == 3
    assert summary.total_amount == 170
    assert summary.daily_sales == {"2025-01-01": 150, "2025-01-02": 20}
    assert summary.vendor_sales == {"NPC_B": 100, "NPC_A": 70}
    assert list(summary.vendor_sales) == ["NPC_B", "NPC_A"]


def test_transaction_summary_for_unknown_character_is_empty(ingestor, store):
    ingestor.process_chunk(LOG, "a.log")
    summary = transaction_summary(store, "Nobody")
    assert summary.total_count == 0
    assert summary.daily_sales == {}


def test_latest_vendor_balances(ingestor, store):
    ingestor.process_chunk(LOG, "a.log")
    latest = latest_vendor_balances(store, "Tester")
    assert list(latest) == ["NPC_A", "NPC_B"]
    assert latest["NPC_A"].payload["balance"] == 980
    assert latest["NPC_B"].payload["balance"] == 200

"""Tests for the SQLite log store."""

from gorgonlog.ingest.store import LogStore
from gorgonlog.models.records import LogEntry, Transaction, VendorSession


def _entry(epoch, line, character="Tester", kind="login", **payload):
    return LogEntry(
        source_id="a.log",
        line_number=line,
        epoch_seconds=epoch,
        character=character,
        event_kind=kind,
        payload=payload,
    )


def test_schema_created(tmp_path):
    store = LogStore(tmp_path / "nested" / "db.sqlite")
    assert store.db_path.exists()
    assert store.count_entries() == 0


def test_write_batch_ignores_duplicate_keys(store):
    first = _entry(100, 1, date="2025-01-01", time="00:01:40")
    assert store.write_batch([first]) == 1
    assert store.write_batch([first, _entry(100, 2)]) == 1
    assert store.count_entries() == 2
    assert store.has_entry(first.natural_key)
    assert not store.has_entry((100, "Tester", 3))


def test_unknown_character_is_stored_under_empty_key(store):
    store.write_batch([_entry(100, 1, character=None)])
    assert store.has_entry((100, "", 1))
    [entry] = store.entries_for_character("")
    assert entry.character is None


def test_existing_keys_spans_lookup_batches(store):
    entries = [_entry(1000 + i, i) for i in range(700)]
    store.write_batch(entries)
    probe = [e.natural_key for e in entries] + [(5, "Tester", 9999), (1000, "Other", 0)]
    found = store.existing_keys(probe)
    assert len(found) == 700
    assert (5, "Tester", 9999) not in found


def test_entries_filter_by_kind_and_range(store):
    store.write_batch(
        [
            _entry(100, 1),
            _entry(200, 2, kind="vendor_screen", npc_name="NPC_A"),
            _entry(300, 3, kind="vendor_screen", npc_name="NPC_B"),
            _entry(400, 4, character="Other", kind="vendor_screen"),
        ]
    )
    screens = store.entries_for_character("Tester", kind="vendor_screen")
    assert [e.payload["npc_name"] for e in screens] == ["NPC_A", "NPC_B"]
    assert [e.line_number for e in store.entries_for_character("Tester", start=150, end=250)] == [2]
    assert len(store.entries_for_character("Tester", limit=2)) == 2


def test_transactions_and_session_upsert(store):
    tx = Transaction(
        character="Tester",
        npc_name="NPC_A",
        session_id=1,
        amount=25,
        epoch_seconds=500,
        balance_before=100,
        balance_after=75,
        line_number=4,
    )
    session = VendorSession(session_id=1, npc_name="NPC_A", character="Tester", balance=100, reset_timer=0, max_balance=500)
    store.write_batch([_entry(500, 4, kind="vendor_balance")], [tx], [session])
    store.write_batch([], [tx], [session.model_copy(update={"balance": 75})])

    assert store.transactions_for_character("Tester") == [tx]
    assert store.transactions_for_character("Tester", start=501) == []
    [stored] = store.vendor_sessions_for_character("Tester")
    assert stored.balance == 75

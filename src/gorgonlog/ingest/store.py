from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Iterable, Optional

from ..models.records import LogEntry, NaturalKey, Transaction, VendorSession, character_key

# Keys are looked up in batches to stay under SQLite's bound-variable limit (999).
_LOOKUP_BATCH = 300


def _json_dumps(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _json_loads(text: str) -> Any:
    return json.loads(text) if text else None


def _entry_from_row(row: sqlite3.Row) -> LogEntry:
    return LogEntry(
        source_id=str(row["source_id"]),
        line_number=int(row["line_number"]),
        epoch_seconds=int(row["epoch_seconds"]),
        character=str(row["character"]) or None,
        event_kind=str(row["event_kind"]),
        payload=dict(_json_loads(str(row["payload_json"])) or {}),
    )


def _transaction_from_row(row: sqlite3.Row) -> Transaction:
    return Transaction(
        character=str(row["character"]),
        npc_name=str(row["npc_name"]),
        session_id=int(row["session_id"]),
        amount=int(row["amount"]),
        epoch_seconds=int(row["epoch_seconds"]),
        balance_before=int(row["balance_before"]),
        balance_after=int(row["balance_after"]),
        line_number=int(row["line_number"]),
    )


def _session_from_row(row: sqlite3.Row) -> VendorSession:
    return VendorSession(
        session_id=int(row["session_id"]),
        npc_name=str(row["npc_name"]),
        character=str(row["character"]) or None,
        favor_value=float(row["favor_value"]),
        favor_label=str(row["favor_label"]),
        balance=int(row["balance"]),
        reset_timer=int(row["reset_timer"]),
        max_balance=int(row["max_balance"]),
        last_seen_time=row["last_seen_time"],
    )


class LogStore:
    """SQLite-backed keyed store for log entries, transactions and vendor snapshots."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        conn = self._connect()
        try:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS log_entries(
                  epoch_seconds INTEGER NOT NULL,
                  character TEXT NOT NULL,
                  line_number INTEGER NOT NULL,
                  source_id TEXT NOT NULL,
                  event_kind TEXT NOT NULL,
                  payload_json TEXT NOT NULL,
                  PRIMARY KEY(epoch_seconds, character, line_number)
                );

                CREATE TABLE IF NOT EXISTS transactions(
                  epoch_seconds INTEGER NOT NULL,
                  character TEXT NOT NULL,
                  line_number INTEGER NOT NULL,
                  npc_name TEXT NOT NULL,
                  session_id INTEGER NOT NULL,
                  amount INTEGER NOT NULL CHECK(amount > 0),
                  balance_before INTEGER NOT NULL,
                  balance_after INTEGER NOT NULL,
                  PRIMARY KEY(epoch_seconds, character, line_number)
                );

                CREATE TABLE IF NOT EXISTS vendor_sessions(
                  character TEXT NOT NULL,
                  session_id INTEGER NOT NULL,
                  npc_name TEXT NOT NULL,
                  favor_value REAL NOT NULL,
                  favor_label TEXT NOT NULL,
                  balance INTEGER NOT NULL,
                  reset_timer INTEGER NOT NULL,
                  max_balance INTEGER NOT NULL,
                  last_seen_time TEXT,
                  PRIMARY KEY(character, session_id, npc_name)
                );

                CREATE INDEX IF NOT EXISTS idx_log_entries_character ON log_entries(character, epoch_seconds);
                CREATE INDEX IF NOT EXISTS idx_transactions_character ON transactions(character, epoch_seconds);
                """
            )
            conn.commit()
        finally:
            conn.close()

    def has_entry(self, key: NaturalKey) -> bool:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT 1 FROM log_entries WHERE epoch_seconds = ? AND character = ? AND line_number = ?",
                key,
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    def existing_keys(self, keys: Iterable[NaturalKey]) -> set[NaturalKey]:
        """Return the subset of `keys` already present in the store."""
        keys = list(dict.fromkeys(keys))
        found: set[NaturalKey] = set()
        if not keys:
            return found
        conn = self._connect()
        try:
            for i in range(0, len(keys), _LOOKUP_BATCH):
                batch = keys[i : i + _LOOKUP_BATCH]
                clauses = " OR ".join(["(epoch_seconds = ? AND character = ? AND line_number = ?)"] * len(batch))
                params = [v for key in batch for v in key]
                rows = conn.execute(
                    f"""
                    SELECT epoch_seconds, character, line_number
                    FROM log_entries
                    WHERE {clauses}
                    """,
                    params,
                ).fetchall()
                for r in rows:
                    found.add((int(r["epoch_seconds"]), str(r["character"]), int(r["line_number"])))
        finally:
            conn.close()
        return found

    def write_batch(
        self,
        entries: Iterable[LogEntry],
        transactions: Iterable[Transaction] = (),
        sessions: Iterable[VendorSession] = (),
    ) -> int:
        """Write entries, transactions and session snapshots in one transaction.

        Entries whose key already exists are ignored. Returns the number of
        entries inserted.
        """
        conn = self._connect()
        try:
            with conn:
                inserted = 0
                for e in entries:
                    cur = conn.execute(
                        """
                        INSERT OR IGNORE INTO log_entries(
                          epoch_seconds, character, line_number, source_id, event_kind, payload_json
                        )
                        VALUES(?, ?, ?, ?, ?, ?)
                        """,
                        (
                            e.epoch_seconds,
                            character_key(e.character),
                            e.line_number,
                            e.source_id,
                            e.event_kind,
                            _json_dumps(e.payload),
                        ),
                    )
                    inserted += cur.rowcount
                conn.executemany(
                    """
                    INSERT OR IGNORE INTO transactions(
                      epoch_seconds, character, line_number, npc_name, session_id,
                      amount, balance_before, balance_after
                    )
                    VALUES(?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            t.epoch_seconds,
                            t.character,
                            t.line_number,
                            t.npc_name,
                            t.session_id,
                            t.amount,
                            t.balance_before,
                            t.balance_after,
                        )
                        for t in transactions
                    ],
                )
                conn.executemany(
                    """
                    INSERT INTO vendor_sessions(
                      character, session_id, npc_name, favor_value, favor_label,
                      balance, reset_timer, max_balance, last_seen_time
                    )
                    VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(character, session_id, npc_name) DO UPDATE SET
                      favor_value=excluded.favor_value,
                      favor_label=excluded.favor_label,
                      balance=excluded.balance,
                      reset_timer=excluded.reset_timer,
                      max_balance=excluded.max_balance,
                      last_seen_time=excluded.last_seen_time
                    """,
                    [
                        (
                            character_key(s.character),
                            s.session_id,
                            s.npc_name,
                            s.favor_value,
                            s.favor_label,
                            s.balance,
                            s.reset_timer,
                            s.max_balance,
                            s.last_seen_time,
                        )
                        for s in sessions
                    ],
                )
            return inserted
        finally:
            conn.close()

    def entries_for_character(
        self,
        character: str,
        *,
        kind: Optional[str] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[LogEntry]:
        sql = "SELECT * FROM log_entries WHERE character = ?"
        params: list[Any] = [character]
        if kind is not None:
            sql += " AND event_kind = ?"
            params.append(kind)
        if start is not None:
            sql += " AND epoch_seconds >= ?"
            params.append(start)
        if end is not None:
            sql += " AND epoch_seconds <= ?"
            params.append(end)
        sql += " ORDER BY epoch_seconds ASC, line_number ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        conn = self._connect()
        try:
            return [_entry_from_row(r) for r in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def transactions_for_character(
        self,
        character: str,
        *,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> list[Transaction]:
        sql = "SELECT * FROM transactions WHERE character = ?"
        params: list[Any] = [character]
        if start is not None:
            sql += " AND epoch_seconds >= ?"
            params.append(start)
        if end is not None:
            sql += " AND epoch_seconds <= ?"
            params.append(end)
        sql += " ORDER BY epoch_seconds ASC, line_number ASC"
        conn = self._connect()
        try:
            return [_transaction_from_row(r) for r in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def vendor_sessions_for_character(self, character: str) -> list[VendorSession]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM vendor_sessions WHERE character = ? ORDER BY npc_name, session_id",
                (character,),
            ).fetchall()
            return [_session_from_row(r) for r in rows]
        finally:
            conn.close()

    def count_entries(self) -> int:
        conn = self._connect()
        try:
            row = conn.execute("SELECT COUNT(1) AS n FROM log_entries").fetchone()
            return int(row["n"]) if row is not None else 0
        finally:
            conn.close()

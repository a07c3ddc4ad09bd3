"""Ingestion manifest: append-only run records for import and tail runs."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from .paths import DataPaths

logger = logging.getLogger(__name__)

MANIFEST_SCHEMA_VERSION = 1

RunSource = Literal["import", "tail"]


class IngestCounts(BaseModel):
    """Counts for an ingestion run."""

    written: int = 0
    skipped: int = 0
    transactions: int = 0
    malformed: int = 0
    unmatched: int = 0


class IngestRunRecord(BaseModel):
    """Append-only manifest record for one ingestion run."""

    schema_version: int = Field(default=MANIFEST_SCHEMA_VERSION)
    source: RunSource
    run_id: str
    source_id: str
    counts: IngestCounts
    character: Optional[str] = None
    app_version: str
    created_at: str
    cursor: Optional[dict] = None


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _safe_read_jsonl(path: Path) -> list[dict]:
    if not path.exists():
        return []
    records: list[dict] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError:
                continue
    return records


def append_manifest_record(data_paths: DataPaths, record: IngestRunRecord) -> None:
    """Append a manifest record to the JSONL manifest file."""
    manifest_path = data_paths.ingest_manifest_file
    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    with open(manifest_path, "a", encoding="utf-8") as f:
        f.write(record.model_dump_json() + "\n")


def load_manifest_records(data_paths: DataPaths) -> list[IngestRunRecord]:
    """Load manifest records (best-effort; skips malformed lines)."""
    records: list[IngestRunRecord] = []
    for raw in _safe_read_jsonl(data_paths.ingest_manifest_file):
        try:
            records.append(IngestRunRecord(**raw))
        except ValidationError as e:
            logger.debug(f"Skipping invalid manifest record: {e}")
            continue
    return records


def latest_record_by_source(records: list[IngestRunRecord]) -> dict[str, IngestRunRecord]:
    """Return the latest record per source based on append order."""
    latest: dict[str, IngestRunRecord] = {}
    for record in records:
        latest[record.source] = record
    return latest


def totals_by_source(records: list[IngestRunRecord]) -> dict[str, IngestCounts]:
    """Compute cumulative counts per source."""
    totals: dict[str, IngestCounts] = {}
    for record in records:
        if record.source not in totals:
            totals[record.source] = IngestCounts()
        total = totals[record.source]
        total.written += record.counts.written
        total.skipped += record.counts.skipped
        total.transactions += record.counts.transactions
        total.malformed += record.counts.malformed
        total.unmatched += record.counts.unmatched
    return totals


def build_manifest_record(
    *,
    source: RunSource,
    run_id: str,
    source_id: str,
    counts: IngestCounts,
    app_version: str,
    character: Optional[str] = None,
    cursor: Optional[dict] = None,
    created_at: Optional[str] = None,
) -> IngestRunRecord:
    """Helper to build a manifest record with defaults."""
    return IngestRunRecord(
        source=source,
        run_id=run_id,
        source_id=source_id,
        counts=counts,
        character=character,
        app_version=app_version,
        created_at=created_at or _now_utc_iso(),
        cursor=cursor,
    )

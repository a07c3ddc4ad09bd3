"""Deduplicated ingestion of player.log content into the log store."""

from .coordinator import ChunkResult, LogIngestor
from .store import LogStore
from .tail import TailState, read_appended

__all__ = ["ChunkResult", "LogIngestor", "LogStore", "TailState", "read_appended"]

"""Path management for the gorgonlog data directory."""

from pathlib import Path
from typing import Optional

from .config import GorgonLogConfig


class DataPaths:
    """Manages paths within the gorgonlog data directory."""

    def __init__(self, data_root: Path, *, db_file: str = "gorgonlog.sqlite", tail_state_file: str = "state/tail_state.json"):
        """Initialize data paths from root directory.

        Args:
            data_root: Root directory for the store and state files
            db_file: SQLite file name, relative to data_root
            tail_state_file: Tail cursor file, relative to data_root
        """
        self.root = data_root
        self.state = data_root / "state"

        self.db_file = data_root / db_file
        self.tail_state_file = data_root / tail_state_file
        self.ingest_manifest_file = data_root / "ingest_manifest.jsonl"

    @classmethod
    def from_config(cls, config: GorgonLogConfig) -> "DataPaths":
        """Create DataPaths from a GorgonLogConfig."""
        return cls(config.data_dir, db_file=config.db_file, tail_state_file=config.tail_state_file)

    def get_all_directories(self) -> list[Path]:
        """Get list of all directories that should exist."""
        return [self.root, self.state, self.db_file.parent, self.tail_state_file.parent]


def find_latest_player_log(log_dir: Path) -> Optional[Path]:
    """Return the most recently modified player*.log in `log_dir`, if any."""
    if not log_dir.is_dir():
        return None
    candidates = [
        p for p in log_dir.iterdir()
        if p.is_file() and p.name.lower().startswith("player") and p.suffix.lower() == ".log"
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)

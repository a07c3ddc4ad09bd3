"""Cursor over a growing player.log for one-shot incremental reads."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from ..models.context import ParseContext

logger = logging.getLogger(__name__)


class TailState(BaseModel):
    """Where the last tail read stopped, plus the parse context at that point."""

    path: Optional[str] = None
    offset: int = 0
    context: ParseContext = Field(default_factory=ParseContext)
    last_run_at: Optional[datetime] = None

    @classmethod
    def load(cls, state_file: Path) -> "TailState":
        if not state_file.exists():
            logger.info(f"Tail state file {state_file} does not exist, creating new state")
            return cls()
        try:
            with open(state_file, "r", encoding="utf-8") as f:
                return cls.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load tail state {state_file}: {e}, using empty state")
            return cls()

    def save(self, state_file: Path) -> None:
        """Save state to JSON file atomically."""
        state_file.parent.mkdir(parents=True, exist_ok=True)
        temp_file = state_file.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(self.model_dump_json(indent=2))
            temp_file.replace(state_file)
        except OSError as e:
            logger.error(f"Failed to save tail state to {state_file}: {e}")
            temp_file.unlink(missing_ok=True)
            raise

    def rewind_if_needed(self, log_path: Path) -> bool:
        """Reset cursor and context when the file changed identity or shrank."""
        resolved = str(log_path.resolve())
        size = log_path.stat().st_size
        if self.path == resolved and size >= self.offset:
            return False
        if self.path is not None:
            logger.info(f"Tail target changed or truncated ({self.path} -> {resolved}), resetting cursor")
        self.path = resolved
        self.offset = 0
        self.context = ParseContext()
        return True

    def mark_run(self) -> None:
        self.last_run_at = datetime.now(timezone.utc)


def read_appended(log_path: Path, offset: int) -> tuple[str, int]:
    """Read complete lines appended after `offset`.

    A trailing partial line is left for the next read. Returns the text and
    the new byte offset.
    """
    with open(log_path, "rb") as f:
        f.seek(offset)
        data = f.read()
    cut = data.rfind(b"\n")
    if cut == -1:
        return "", offset
    chunk = data[: cut + 1]
    return chunk.decode("utf-8", errors="replace"), offset + len(chunk)

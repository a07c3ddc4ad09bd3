"""Serializable continuation state carried between parse calls."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from .records import VendorSession

logger = logging.getLogger(__name__)


class PendingInteraction(BaseModel):
    """An interaction start waiting for its vendor screen."""

    character: Optional[str] = None
    session_id: int
    npc_name: str
    favor_value: float
    time: Optional[str] = None


class ParseContext(BaseModel):
    """State that must survive between incremental parse calls."""

    last_known_character: Optional[str] = None
    last_known_date: Optional[str] = None
    last_known_time_of_day: Optional[str] = None
    open_session_id: Optional[int] = None
    vendor_sessions: dict[int, VendorSession] = Field(default_factory=dict)
    pending_interactions: list[PendingInteraction] = Field(default_factory=list)
    line_offset: int = 0

    @property
    def is_empty(self) -> bool:
        return self == ParseContext()

    @classmethod
    def load(cls, state_file: Path) -> "ParseContext":
        """Load context from JSON file, falling back to an empty context."""
        if not state_file.exists():
            logger.info(f"Context file {state_file} does not exist, starting empty")
            return cls()

        try:
            with open(state_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load context file {state_file}: {e}, using empty context")
            return cls()

    def save(self, state_file: Path) -> None:
        """Save context to JSON file atomically."""
        state_file.parent.mkdir(parents=True, exist_ok=True)

        temp_file = state_file.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(self.model_dump_json(indent=2))
            temp_file.replace(state_file)
            logger.debug(f"Saved context to {state_file}")
        except OSError as e:
            logger.error(f"Failed to save context to {state_file}: {e}")
            temp_file.unlink(missing_ok=True)
            raise

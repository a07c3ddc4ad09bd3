"""Configuration management for gorgonlog."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11


DEFAULT_DATA_DIR = "gorgonlog_data"


def default_game_log_dir() -> Path:
    """Windows client location: %USERPROFILE%/AppData/LocalLow/Elder Game/Project Gorgon."""
    return Path.home() / "AppData" / "LocalLow" / "Elder Game" / "Project Gorgon"


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent

        # Stop if we reach filesystem root
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .gorgonlog/config.toml if it exists."""
    config_file = repo_root / ".gorgonlog" / "config.toml"

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        # If config file is malformed, ignore it
        return None


def _get_repo_config_value(data: Optional[dict], keys: list[str]) -> Optional[str]:
    """Safely get a nested repo config value."""
    if not data:
        return None
    current = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    if isinstance(current, str):
        return current
    return None


def resolve_data_dir(cli_data_dir: Optional[str] = None) -> Path:
    """Resolve the data directory with the following precedence:

    1. CLI --data-dir option (if provided)
    2. repo-local .gorgonlog/config.toml `data_dir` (walk upward from CWD)
    3. GORGONLOG_DATA_DIR environment variable
    4. ./gorgonlog_data

    The directory does not need to exist yet.
    """
    if cli_data_dir:
        return Path(cli_data_dir).expanduser().resolve()

    repo_root = _find_repo_root(Path.cwd())
    repo_value = _get_repo_config_value(_load_repo_config_data(repo_root), ["data_dir"])
    if repo_value:
        path = Path(repo_value).expanduser()
        if not path.is_absolute():
            path = repo_root / path
        return path.resolve()

    env_value = os.environ.get("GORGONLOG_DATA_DIR")
    if env_value:
        return Path(env_value).expanduser().resolve()

    return (Path.cwd() / DEFAULT_DATA_DIR).resolve()


class GorgonLogConfig(BaseModel):
    """Configuration for log ingestion and its local store."""

    data_dir: Path = Field(default_factory=lambda: Path(DEFAULT_DATA_DIR))
    db_file: str = Field(default="gorgonlog.sqlite")
    tail_state_file: str = Field(default="state/tail_state.json")
    game_log_dir: Path = Field(default_factory=default_game_log_dir)
    log_level: str = Field(default="WARNING")

    @classmethod
    def from_env(cls, cli_data_dir: Optional[str] = None) -> "GorgonLogConfig":
        """Load configuration from CLI override, repo config, environment or defaults."""
        data_dir = resolve_data_dir(cli_data_dir)
        repo_config = _load_repo_config_data(_find_repo_root(Path.cwd()))

        def pick(env_name: str, repo_key: str, default: str) -> str:
            return (
                os.environ.get(env_name)
                or _get_repo_config_value(repo_config, ["ingest", repo_key])
                or default
            )

        game_log_dir = pick("GORGONLOG_GAME_LOG_DIR", "game_log_dir", "")
        return cls(
            data_dir=data_dir,
            db_file=pick("GORGONLOG_DB_FILE", "db_file", "gorgonlog.sqlite"),
            tail_state_file=pick("GORGONLOG_TAIL_STATE_FILE", "tail_state_file", "state/tail_state.json"),
            game_log_dir=Path(game_log_dir).expanduser() if game_log_dir else default_game_log_dir(),
            log_level=pick("GORGONLOG_LOG_LEVEL", "log_level", "WARNING").upper(),
        )

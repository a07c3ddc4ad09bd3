"""Pytest fixtures for gorgonlog tests."""

from datetime import date

import pytest

from gorgonlog.config import GorgonLogConfig
from gorgonlog.ingest import LogIngestor, LogStore
from gorgonlog.paths import DataPaths


_SAMPLE_LOG = (
    "[2025-12-10 15:30:00] LocalPlayer: Logged in as character TestChar. Time UTC=12/10/2025 15:30:00\n"
    "[2025-12-10 18:10:15] LocalPlayer: ProcessStartInteraction(22717, 7, 3032.843, True, NPC_Ragabir, )\n"
    "[2025-12-10 18:13:12] LocalPlayer: ProcessVendorScreen(22717, SoulMates, 57334, 1764962987140, 60000, "
    "Welcome!, VendorInfo[], VendorInfo[], System.Int32[], -1601, )\n"
    "[2025-12-10 18:15:00] LocalPlayer: You received 150 councils for selling Basic Cloth Shirt to NPC_Ragabir\n"
    "[2025-12-10 18:16:00] LocalPlayer: ProcessVendorUpdateAvailableGold(57184, 1764962987140, 60000, )\n"
)


@pytest.fixture
def store(tmp_path):
    """LogStore backed by a temporary SQLite file."""
    return LogStore(tmp_path / "state" / "gorgonlog.sqlite")


@pytest.fixture
def fixed_today():
    return date(2030, 5, 6)


@pytest.fixture
def ingestor(store, fixed_today):
    """LogIngestor with a deterministic wall-clock date."""
    return LogIngestor(store, today=lambda: fixed_today)


@pytest.fixture
def data_paths(tmp_path):
    """DataPaths for a temporary data directory.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        DataPaths instance with directories created
    """
    config = GorgonLogConfig(data_dir=tmp_path / "data")
    paths = DataPaths.from_config(config)
    for directory in paths.get_all_directories():
        directory.mkdir(parents=True, exist_ok=True)
    return paths


@pytest.fixture
def sample_log():
    """A short player.log excerpt: login, one vendor visit, one sale."""
    return _SAMPLE_LOG

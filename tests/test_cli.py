"""Tests for CLI commands, invoked directly with a captured console."""

import io
from unittest.mock import patch

import pytest
from click.exceptions import Exit
from rich.console import Console

from gorgonlog import cli


@pytest.fixture
def captured():
    console = Console(file=io.StringIO(), width=200)
    with patch("gorgonlog.cli.console", console):
        yield console


def _output(console) -> str:
    return console.file.getvalue()


class TestImport:
    def test_import_then_reimport(self, tmp_path, captured, sample_log):
        log = tmp_path / "Player.log"
        log.write_text(sample_log, encoding="utf-8")
        data_dir = str(tmp_path / "data")

        cli.import_logs(files=[log], data_dir=data_dir, source=None, dry_run=False, no_dedup=False)
        cli.import_logs(files=[log], data_dir=data_dir, source=None, dry_run=False, no_dedup=False)

        out = _output(captured)
        assert "Player.log: 4 written, 0 duplicates, 1 transactions" in out
        assert "Player.log: 0 written, 4 duplicates, 0 transactions" in out
        assert "Character: TestChar" in out

        cli.runs(data_dir=data_dir)
        assert "import" in _output(captured)

    def test_dry_run_records_nothing(self, tmp_path, captured, sample_log):
        log = tmp_path / "Player.log"
        log.write_text(sample_log, encoding="utf-8")
        data_dir = str(tmp_path / "data")

        cli.import_logs(files=[log], data_dir=data_dir, source="archive", dry_run=True, no_dedup=False)
        assert "DRY-RUN" in _output(captured)

        cli.runs(data_dir=data_dir)
        assert "No ingestion runs recorded" in _output(captured)

    def test_missing_file_exits(self, tmp_path, captured):
        with pytest.raises(Exit):
            cli.import_logs(
                files=[tmp_path / "nope.log"],
                data_dir=str(tmp_path / "data"),
                source=None,
                dry_run=False,
                no_dedup=False,
            )
        assert "File not found" in _output(captured)


class TestTail:
    def test_tail_reads_only_new_lines(self, tmp_path, captured, sample_log):
        lines = sample_log.splitlines(keepends=True)
        log = tmp_path / "Player.log"
        log.write_text("".join(lines[:3]), encoding="utf-8")
        data_dir = str(tmp_path / "data")

        cli.tail(file=log, data_dir=data_dir)
        with open(log, "a", encoding="utf-8") as f:
            f.write("".join(lines[3:]))
        cli.tail(file=log, data_dir=data_dir)
        cli.tail(file=log, data_dir=data_dir)

        out = _output(captured)
        assert "Player.log: 3 written" in out
        assert "Player.log: 1 written, 0 duplicates, 1 transactions" in out
        assert "No new lines" in out

        cli.sales(character="TestChar", date_from=None, date_to=None, data_dir=data_dir)
        assert "150" in _output(captured)

    def test_reset_forgets_cursor(self, tmp_path, captured, sample_log):
        log = tmp_path / "Player.log"
        log.write_text(sample_log, encoding="utf-8")
        data_dir = str(tmp_path / "data")

        cli.tail(file=log, data_dir=data_dir)
        cli.reset(data_dir=data_dir)
        cli.tail(file=log, data_dir=data_dir)
        assert "0 written, 4 duplicates" in _output(captured)


class TestReports:
    def test_sales_rejects_bad_date(self, tmp_path, captured):
        with pytest.raises(Exit):
            cli.sales(character="TestChar", date_from="10/12/2025", date_to=None, data_dir=str(tmp_path / "data"))

    def test_vendors_and_logs(self, tmp_path, captured, sample_log):
        log = tmp_path / "Player.log"
        log.write_text(sample_log, encoding="utf-8")
        data_dir = str(tmp_path / "data")
        cli.import_logs(files=[log], data_dir=data_dir, source=None, dry_run=False, no_dedup=False)

        cli.vendors(character="TestChar", data_dir=data_dir)
        out = _output(captured)
        assert "NPC_Ragabir" in out
        assert "57184" in out

        cli.logs(character="TestChar", kind="login", limit=10, as_json=False, data_dir=data_dir)
        assert "login" in _output(captured)

        cli.logs(character="Nobody", kind=None, limit=10, as_json=False, data_dir=data_dir)
        assert "No log entries for Nobody" in _output(captured)

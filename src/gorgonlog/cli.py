"""Typer-based CLI for gorgonlog."""

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import GorgonLogConfig
from .ingest import ChunkResult, LogIngestor, LogStore, TailState, read_appended
from .ingest_manifest import (
    IngestCounts,
    append_manifest_record,
    build_manifest_record,
    latest_record_by_source,
    load_manifest_records,
    totals_by_source,
)
from .paths import DataPaths, find_latest_player_log
from .reports import latest_vendor_balances, transaction_summary

app = typer.Typer(
    name="gorgonlog",
    help="gorgonlog - Project Gorgon player.log ingestion",
    add_completion=False,
)

console = Console()

DATA_DIR_HELP = "Data directory (default: .gorgonlog/config.toml, GORGONLOG_DATA_DIR or ./gorgonlog_data)"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Log parser diagnostics"),
):
    level = logging.DEBUG if verbose else logging.getLevelName(GorgonLogConfig.from_env().log_level)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _open(data_dir: Optional[str]) -> tuple[GorgonLogConfig, DataPaths, LogStore]:
    config = GorgonLogConfig.from_env(data_dir)
    paths = DataPaths.from_config(config)
    for directory in paths.get_all_directories():
        directory.mkdir(parents=True, exist_ok=True)
    return config, paths, LogStore(paths.db_file)


def _day_bounds(value: Optional[str], *, end: bool) -> Optional[int]:
    if not value:
        return None
    try:
        day = datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        console.print(f"[red]Error: Invalid date '{value}'. Use YYYY-MM-DD[/red]")
        raise typer.Exit(code=1)
    if end:
        day = day + timedelta(days=1) - timedelta(seconds=1)
    return int(day.timestamp())


def _counts(result: ChunkResult) -> IngestCounts:
    return IngestCounts(
        written=result.written,
        skipped=result.skipped_duplicates,
        transactions=len(result.transactions),
        malformed=result.malformed,
        unmatched=result.unmatched_updates,
    )


def _print_result(label: str, result: ChunkResult) -> None:
    prefix = "[yellow]DRY-RUN[/yellow] " if result.dry_run else ""
    console.print(
        f"{prefix}[green]+[/green] {label}: {result.written} written, "
        f"{result.skipped_duplicates} duplicates, {len(result.transactions)} transactions, "
        f"{result.sessions_touched} vendor sessions"
    )
    if result.character:
        console.print(f"  [dim]Character:[/dim] {result.character}")
    if result.malformed or result.unmatched_updates:
        console.print(
            f"  [yellow]{result.malformed} malformed line(s), "
            f"{result.unmatched_updates} unmatched balance update(s)[/yellow]"
        )


@app.command("import")
def import_logs(
    files: list[Path] = typer.Argument(..., help="player.log files to import"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
    source: str = typer.Option(None, "--source", "-s", help="Source id (default: file name)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Parse and count without writing"),
    no_dedup: bool = typer.Option(False, "--no-dedup", help="Skip the duplicate lookup"),
):
    """Import whole log files.

    Each file is parsed with a fresh context. Re-importing a file that was
    already ingested writes nothing.
    """
    _, paths, store = _open(data_dir)
    ingestor = LogIngestor(store)
    run_id = str(uuid.uuid4())

    for file in files:
        if not file.is_file():
            console.print(f"[red]Error: File not found: {file}[/red]")
            raise typer.Exit(code=1)

        source_id = source or file.name
        ingestor.reset_context()
        try:
            content = file.read_text(encoding="utf-8", errors="replace")
            result = ingestor.process_chunk(content, source_id, skip_dedup=no_dedup, dry_run=dry_run)
        except (OSError, sqlite3.Error) as e:
            console.print(f"[red]Error importing {file}: {e}[/red]")
            raise typer.Exit(code=1)

        _print_result(source_id, result)
        if not dry_run:
            append_manifest_record(
                paths,
                build_manifest_record(
                    source="import",
                    run_id=run_id,
                    source_id=source_id,
                    counts=_counts(result),
                    character=result.character,
                    app_version=__version__,
                ),
            )


@app.command()
def tail(
    file: Optional[Path] = typer.Argument(None, help="Log file (default: newest player*.log in the game log dir)"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Ingest lines appended since the last tail run.

    Run it periodically while playing; parse context is carried between runs.
    """
    config, paths, store = _open(data_dir)

    log_path = file or find_latest_player_log(config.game_log_dir)
    if log_path is None or not log_path.is_file():
        console.print(f"[red]Error: No player log found in {config.game_log_dir}[/red]")
        raise typer.Exit(code=1)

    state = TailState.load(paths.tail_state_file)
    if state.rewind_if_needed(log_path):
        console.print(f"[dim]Tailing {log_path} from the start[/dim]")

    content, new_offset = read_appended(log_path, state.offset)
    if not content:
        console.print("[dim]No new lines[/dim]")
        return

    ingestor = LogIngestor(store, context=state.context)
    try:
        result = ingestor.process_chunk(content, log_path.name, is_incremental=True)
    except sqlite3.Error as e:
        console.print(f"[red]Error writing to store: {e}[/red]")
        raise typer.Exit(code=1)

    state.context = ingestor.snapshot_context()
    state.offset = new_offset
    state.mark_run()
    state.save(paths.tail_state_file)

    _print_result(log_path.name, result)
    append_manifest_record(
        paths,
        build_manifest_record(
            source="tail",
            run_id=str(uuid.uuid4()),
            source_id=log_path.name,
            counts=_counts(result),
            character=result.character,
            app_version=__version__,
            cursor={"path": state.path, "offset": state.offset, "line_offset": state.context.line_offset},
        ),
    )


@app.command()
def reset(
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Forget the tail cursor and parse context (use before switching characters or files)."""
    _, paths, _ = _open(data_dir)
    TailState().save(paths.tail_state_file)
    console.print("[green]Tail state reset[/green]")


@app.command()
def sales(
    character: str = typer.Argument(..., help="Character name"),
    date_from: str = typer.Option(None, "--from", help="First day (YYYY-MM-DD)"),
    date_to: str = typer.Option(None, "--to", help="Last day (YYYY-MM-DD)"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Show vendor sales for a character."""
    _, _, store = _open(data_dir)
    summary = transaction_summary(
        store,
        character,
        start=_day_bounds(date_from, end=False),
        end=_day_bounds(date_to, end=True),
    )
    if not summary.total_count:
        console.print(f"[yellow]No transactions for {character}[/yellow]")
        return

    table = Table(title=f"Daily Sales: {character}")
    table.add_column("Date", style="cyan")
    table.add_column("Amount", style="green", justify="right")
    for day, amount in summary.daily_sales.items():
        table.add_row(day, str(amount))
    console.print(table)

    table = Table(title="By Vendor")
    table.add_column("NPC", style="magenta")
    table.add_column("Amount", style="green", justify="right")
    for npc, amount in summary.vendor_sales.items():
        table.add_row(npc, str(amount))
    console.print(table)

    console.print(f"[bold green]Total:[/bold green] {summary.total_amount} over {summary.total_count} sale(s)")


@app.command()
def vendors(
    character: str = typer.Argument(..., help="Character name"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Show the latest known balance of each vendor for a character."""
    _, _, store = _open(data_dir)
    latest = latest_vendor_balances(store, character)
    if not latest:
        console.print(f"[yellow]No vendor observations for {character}[/yellow]")
        return

    table = Table(title=f"Vendor Balances: {character}")
    table.add_column("NPC", style="magenta")
    table.add_column("Balance", style="green", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Seen (UTC)", style="dim")
    for npc, entry in latest.items():
        table.add_row(
            npc,
            str(entry.payload.get("balance", "-")),
            str(entry.payload.get("max_balance", "-")),
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)


@app.command()
def logs(
    character: str = typer.Argument(..., help="Character name"),
    kind: str = typer.Option(None, "--kind", "-k", help="Event kind filter"),
    limit: int = typer.Option(50, "--limit", "-l", help="Maximum entries to show"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON lines"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """List stored log entries for a character."""
    _, _, store = _open(data_dir)
    entries = store.entries_for_character(character, kind=kind, limit=limit)
    if not entries:
        console.print(f"[dim]No log entries for {character}[/dim]")
        return

    if as_json:
        for entry in entries:
            console.print_json(entry.model_dump_json())
        return

    table = Table(title=f"Log Entries: {character}")
    table.add_column("Time (UTC)", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Source", style="dim")
    table.add_column("Line", justify="right")
    table.add_column("Payload")
    for entry in entries:
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            entry.event_kind,
            entry.source_id,
            str(entry.line_number),
            json.dumps(entry.payload, sort_keys=True),
        )
    console.print(table)


@app.command()
def runs(
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Summarize ingestion runs from the manifest."""
    _, paths, _ = _open(data_dir)
    records = load_manifest_records(paths)
    if not records:
        console.print("[dim]No ingestion runs recorded[/dim]")
        return

    latest = latest_record_by_source(records)
    totals = totals_by_source(records)
    table = Table(title="Ingestion Runs")
    table.add_column("Source", style="cyan")
    table.add_column("Last Run", style="dim")
    table.add_column("Last File")
    table.add_column("Written", justify="right", style="green")
    table.add_column("Skipped", justify="right")
    table.add_column("Sales", justify="right", style="magenta")
    for source, record in sorted(latest.items()):
        total = totals[source]
        table.add_row(
            source,
            record.created_at,
            record.source_id,
            str(total.written),
            str(total.skipped),
            str(total.transactions),
        )
    console.print(table)


@app.command()
def version():
    """Show gorgonlog version."""
    console.print(f"gorgonlog v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

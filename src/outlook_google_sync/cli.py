"""
Command-line interface for Outlook → Google Calendar sync.
"""

import logging
import signal
from configparser import ConfigParser
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from outlook_google_sync.db import query_status
from outlook_google_sync.models import DEFAULT_CONFIG
from outlook_google_sync.models import DEFAULT_INTERVAL
from outlook_google_sync.models import DEFAULT_STATE_DB
from outlook_google_sync.models import DEFAULT_TOKEN_CACHE
from outlook_google_sync.models import CalendarSyncError
from outlook_google_sync.models import SyncConfig
from outlook_google_sync.models import SyncReport
from outlook_google_sync.sync import CalendarSynchronizer

CONFIG_SECTION = "outlook-google-sync"

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="One-way sync from an Outlook (Microsoft 365) calendar to Google Calendar.",
)

console = Console()


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    state_db: Path = field(default_factory=lambda: DEFAULT_STATE_DB)
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    state_db: Annotated[
        Path,
        typer.Option("--state-db", help=f"Mirror DB path (default: {DEFAULT_STATE_DB})"),
    ] = DEFAULT_STATE_DB,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.state_db = state_db
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _load_config_file(config_path: Path) -> dict[str, str]:
    if not config_path.exists():
        return {}
    parser = ConfigParser()
    parser.read(config_path)
    if CONFIG_SECTION not in parser:
        return {}
    return dict(parser[CONFIG_SECTION])


def _build_config(
    dry_run: bool = False,
    yes: bool = False,
    interval: int | None = None,
) -> SyncConfig:
    config_file = _load_config_file(state.config_path)

    missing = [
        key
        for key in ("google_calendar_id", "google_credentials", "m365_client_id")
        if not config_file.get(key)
    ]
    if missing:
        console.print(
            f"[bold red]Error:[/] Missing [cyan]{', '.join(missing)}[/] in "
            f"[cyan]{state.config_path}[/] (section [cyan]\\[{CONFIG_SECTION}][/])."
        )
        raise typer.Exit(1)

    if interval is None:
        try:
            interval = int(config_file.get("interval") or DEFAULT_INTERVAL)
        except ValueError:
            console.print("[bold red]Error:[/] interval must be an integer number of seconds.")
            raise typer.Exit(1) from None

    token_cache = config_file.get("token_cache")

    return SyncConfig(
        google_calendar_id=config_file["google_calendar_id"],
        google_credentials=Path(config_file["google_credentials"]).expanduser(),
        m365_client_id=config_file["m365_client_id"],
        state_db_path=state.state_db,
        timezone=config_file.get("timezone") or "UTC",
        google_subject=config_file.get("google_subject") or None,
        m365_tenant_id=config_file.get("m365_tenant_id") or "common",
        m365_client_secret=config_file.get("m365_client_secret") or None,
        m365_user=config_file.get("m365_user") or None,
        outlook_calendar_id=config_file.get("outlook_calendar_id") or None,
        token_cache_path=Path(token_cache).expanduser() if token_cache else DEFAULT_TOKEN_CACHE,
        interval=interval,
        dry_run=dry_run,
        verbose=state.verbose,
        yes=yes,
    )


def _print_info_panel(cfg: SyncConfig, operation: Text) -> None:
    info = Text()
    info.append("  Outlook:   ", style="bold")
    info.append(f"{cfg.outlook_calendar_id or 'default calendar'}")
    if cfg.m365_user:
        info.append(f" ({cfg.m365_user})", style="dim")
    info.append("\n  Google:    ", style="bold")
    info.append(f"{cfg.google_calendar_id}\n")
    info.append("  Timezone:  ", style="bold")
    info.append(f"{cfg.timezone}\n")
    info.append("  Mirror:    ", style="bold")
    info.append(f"{cfg.state_db_path}\n", style="dim")
    info.append("  Operation: ", style="bold")
    info.append_text(operation)
    if cfg.dry_run:
        info.append("\n  Mode:      ")
        info.append("DRY RUN", style="bold magenta")

    console.print(Panel(info, title="[bold]Outlook → Google Calendar Sync[/bold]"))


def _print_report(report: SyncReport) -> None:
    results = Table.grid(padding=(0, 2))
    results.add_column(style="bold")
    results.add_column(justify="right")
    results.add_row("Created", str(report.created))
    results.add_row("Updated", str(report.updated))
    results.add_row("Deleted", str(report.deleted))
    results.add_row("Unchanged", str(report.unchanged))
    error_val = Text(str(report.failed))
    if report.failed == 0:
        error_val.append(" ✓", style="green")
    else:
        error_val.stylize("bold red")
    results.add_row("Failed", error_val)

    console.print(Panel(results, title="[bold]Results[/bold]", expand=False))

    if report.failures:
        failures = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
        failures.add_column("Action")
        failures.add_column("Event", overflow="fold")
        failures.add_column("Reason", overflow="fold")
        for outcome in report.failures:
            failures.add_row(
                outcome.action.value,
                outcome.summary or outcome.calendar_uid,
                Text(outcome.error, style="red"),
            )
        console.print(failures)


def _run_once(cfg: SyncConfig, operation: Text, clear: bool = False) -> None:
    """Display panel, confirm, run one pass (or clear), show results."""
    from outlook_google_sync.preflight import run_preflight_checks

    if not run_preflight_checks(cfg, console):
        raise typer.Exit(1)

    _print_info_panel(cfg, operation)

    if not cfg.yes and not cfg.dry_run:
        typer.confirm("Proceed?", abort=True)

    synchronizer = CalendarSynchronizer(cfg)
    try:
        report = synchronizer.clear() if clear else synchronizer.run()
    except CalendarSyncError as e:
        console.print(f"[bold red]Sync failed:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None

    _print_report(report)

    if report.failed:
        raise typer.Exit(1)


_DRY_RUN = Annotated[bool, typer.Option("--dry-run", "-n", help="Preview changes without applying")]
_YES = Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")]


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


@app.command()
def sync(dry_run: _DRY_RUN = False, yes: _YES = False) -> None:
    """Run a single sync pass from Outlook to Google Calendar."""
    _run_once(_build_config(dry_run=dry_run, yes=yes), Text("SYNC", style="bold green"))


@app.command()
def clear(dry_run: _DRY_RUN = False, yes: _YES = False) -> None:
    """Remove every synced event from Google Calendar and empty the mirror.

    Events in Google Calendar that were not created by this tool are left alone.
    """
    _run_once(
        _build_config(dry_run=dry_run, yes=yes),
        Text("CLEAR (remove all synced events, no resync)", style="bold red"),
        clear=True,
    )


@app.command()
def run(
    interval: Annotated[
        int | None,
        typer.Option("--interval", "-i", help="Seconds between passes (overrides config)"),
    ] = None,
    dry_run: _DRY_RUN = False,
) -> None:
    """Sync continuously, one pass every [bold]--interval[/] seconds.

    Stops cleanly between passes on SIGINT or SIGTERM.
    """
    from outlook_google_sync.preflight import run_preflight_checks
    from outlook_google_sync.scheduler import SyncScheduler

    cfg = _build_config(dry_run=dry_run, yes=True, interval=interval)
    if not run_preflight_checks(cfg, console):
        raise typer.Exit(1)

    _print_info_panel(cfg, Text(f"RUN (every {cfg.interval}s)", style="bold green"))

    synchronizer = CalendarSynchronizer(cfg)
    scheduler = SyncScheduler(synchronizer.run, interval=cfg.interval)

    def _signal_handler(signum, frame) -> None:
        console.print("\n[yellow]Shutting down after the current pass...[/]")
        scheduler.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _signal_handler)

    scheduler.run()


@app.command()
def status() -> None:
    """Show sync configuration and mirror database summary."""
    config_exists = state.config_path.exists()
    db_exists = state.state_db.exists()

    cfg_info = Text()
    cfg_info.append("  Config:   ", style="bold")
    cfg_info.append(str(state.config_path) + " ")
    cfg_info.append(
        "✓" if config_exists else "(not found)", style="green" if config_exists else "red"
    )
    cfg_info.append("\n  Mirror:   ", style="bold")
    cfg_info.append(str(state.state_db) + " ")
    cfg_info.append("✓" if db_exists else "(not found)", style="green" if db_exists else "yellow")

    config_file = _load_config_file(state.config_path)
    for label, key in (
        ("Outlook:  ", "outlook_calendar_id"),
        ("Google:   ", "google_calendar_id"),
        ("Timezone: ", "timezone"),
    ):
        value = config_file.get(key)
        if value:
            cfg_info.append(f"\n  {label}", style="bold")
            cfg_info.append(value)

    console.print(Panel(cfg_info, title="[bold]Outlook → Google Calendar Sync: Status[/bold]"))

    row = query_status(state.state_db)
    if row is None:
        console.print(
            "[yellow]No mirror database yet, run[/] "
            "[cyan]outlook-google-sync sync[/] "
            "[yellow]to create it.[/]"
        )
        return

    if row["total"] == 0:
        console.print("[yellow]Mirror database is empty, no syncs recorded yet.[/]")
        return

    ts = row["last_sync_at"] or 0
    table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("Tracked", justify="right")
    table.add_column("Recurring", justify="right")
    table.add_column("Last sync")
    table.add_row(
        str(row["total"]),
        str(row["recurring"]),
        datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S") if ts else "—",
    )
    console.print(Panel(table, title="[bold]Mirror[/bold]", expand=False))


@app.command()
def calendars() -> None:
    """List the Outlook calendars visible to the configured account."""
    from outlook_google_sync.graph_client import GraphAuth
    from outlook_google_sync.graph_client import GraphCalendarReader

    cfg = _build_config(yes=True)
    auth = GraphAuth(
        client_id=cfg.m365_client_id,
        tenant_id=cfg.m365_tenant_id,
        client_secret=cfg.m365_client_secret,
        token_cache_path=cfg.token_cache_path,
    )
    reader = GraphCalendarReader(auth, timezone=cfg.timezone, user=cfg.m365_user)
    try:
        entries = reader.list_calendars()
    except CalendarSyncError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Name / ID", min_width=36, overflow="fold")
    table.add_column("Owner")
    table.add_column("Default")
    for cal in entries:
        name_cell = Text()
        name_cell.append(cal["name"], style="bold")
        name_cell.append("\n")
        name_cell.append(cal["id"], style="dim")
        table.add_row(name_cell, cal["owner"], "✓" if cal["is_default"] else "")
    console.print(table)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()

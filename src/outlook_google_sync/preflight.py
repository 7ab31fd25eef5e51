"""
Preflight checks run before sync to catch common misconfigurations early.
"""

import json
import logging
import sqlite3

import pytz
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from outlook_google_sync.models import SyncConfig

logger = logging.getLogger(__name__)

_SERVICE_ACCOUNT_KEYS = frozenset({"client_email", "private_key", "token_uri"})


def collect_issues(cfg: SyncConfig) -> list[tuple[str, str, str]]:
    """Return (label, detail, hint) for every problem found in ``cfg``."""
    issues: list[tuple[str, str, str]] = []

    # 1. Timezone known to the tz database
    try:
        pytz.timezone(cfg.timezone)
    except pytz.UnknownTimeZoneError:
        logger.error("Unknown timezone: %s", cfg.timezone)
        issues.append(
            (
                "Timezone",
                f"Unknown timezone: {cfg.timezone}",
                "Use an IANA name such as Europe/Amsterdam",
            )
        )

    # 2. Google service-account key present and parseable
    creds = cfg.google_credentials
    if not creds.exists():
        logger.error("Google credentials file not found: %s", creds)
        issues.append(
            (
                "Google credentials",
                f"File not found: {creds}",
                "Download a service-account key from the Google Cloud Console",
            )
        )
    else:
        try:
            data = json.loads(creds.read_text())
        except (OSError, ValueError) as e:
            logger.error("Google credentials unreadable (%s): %s", creds, e)
            issues.append(("Google credentials", f"{creds}: {e}", "Check the key file"))
        else:
            missing = sorted(_SERVICE_ACCOUNT_KEYS - set(data))
            if missing:
                issues.append(
                    (
                        "Google credentials",
                        f"{creds}: missing {', '.join(missing)}",
                        "This does not look like a service-account key",
                    )
                )

    # 3. App-only Graph access needs an explicit mailbox
    if cfg.m365_client_secret and not cfg.m365_user:
        issues.append(
            (
                "Microsoft 365",
                "Client secret configured without m365_user",
                "Set m365_user to the mailbox to read (app-only access has no /me)",
            )
        )

    # 4. State DB parent dir writable + DB readable if it exists
    db_path = cfg.state_db_path
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Cannot create state DB directory %s: %s", db_path.parent, e)
        issues.append(
            (
                "State database",
                f"{db_path}: {e}",
                f"Check permissions on {db_path.parent}",
            )
        )
    else:
        if db_path.exists():
            try:
                conn = sqlite3.connect(db_path)
                conn.execute("SELECT 1")
                # BEGIN IMMEDIATE needs a write lock and a journal file next to the DB.
                conn.execute("BEGIN IMMEDIATE")
                conn.execute("ROLLBACK")
                conn.close()
            except sqlite3.Error as e:
                logger.error("State DB not readable/writable (%s): %s", db_path, e)
                issues.append(
                    (
                        "State database",
                        f"{db_path}: {e}",
                        f"Check permissions on {db_path.parent} "
                        f"(journal files must be creatable alongside the DB)",
                    )
                )

    return issues


def run_preflight_checks(cfg: SyncConfig, console: Console) -> bool:
    """Return True if sync may proceed; print issues and return False otherwise."""
    issues = collect_issues(cfg)
    if issues:
        _print_issues(issues, console)
        return False
    return True


def _print_issues(issues: list[tuple[str, str, str]], console: Console) -> None:
    body = Text()
    for i, (label, detail, hint) in enumerate(issues):
        if i:
            body.append("\n")
        body.append(f"  ✗  {label}: ", style="bold red")
        body.append(detail, style="bold red")
        body.append(f"\n       → {hint}", style="yellow")

    console.print(Panel(body, title="[bold red]Preflight checks failed[/bold red]"))

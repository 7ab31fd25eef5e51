"""
Pure data models, no Graph, Google or sqlite imports.
"""

import uuid
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from enum import Enum
from enum import IntFlag
from pathlib import Path

DEFAULT_STATE_DB = Path.home() / ".local/share/outlook-google-sync.db"
DEFAULT_CONFIG = Path.home() / ".config/outlook-google-sync.conf"
DEFAULT_TOKEN_CACHE = Path.home() / ".cache/outlook-google-sync-token.json"
DEFAULT_INTERVAL = 60


class CalendarSyncError(Exception):
    """Base exception for calendar sync errors."""

    pass


class ConfigError(CalendarSyncError):
    """Missing or invalid configuration."""


class SourceReadError(CalendarSyncError):
    """The source calendar could not be read."""


class MirrorStoreError(CalendarSyncError):
    """The mirror database rejected a read or write."""


class RemoteCalendarError(CalendarSyncError):
    """The remote calendar service rejected a call."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class InvalidEventError(CalendarSyncError):
    """A source event cannot be turned into a remote payload."""


class RecurrenceType(str, Enum):
    """Recurrence pattern types as reported by Outlook / Microsoft Graph."""

    DAILY = "daily"
    WEEKLY = "weekly"
    ABSOLUTE_MONTHLY = "absoluteMonthly"
    RELATIVE_MONTHLY = "relativeMonthly"
    ABSOLUTE_YEARLY = "absoluteYearly"
    RELATIVE_YEARLY = "relativeYearly"


class DayOfWeek(IntFlag):
    """Outlook day-of-week mask bits."""

    SUNDAY = 1
    MONDAY = 2
    TUESDAY = 4
    WEDNESDAY = 8
    THURSDAY = 16
    FRIDAY = 32
    SATURDAY = 64


class BusyStatus(str, Enum):
    """Outlook "show as" values."""

    FREE = "free"
    TENTATIVE = "tentative"
    BUSY = "busy"
    OUT_OF_OFFICE = "oof"
    WORKING_ELSEWHERE = "workingElsewhere"
    UNKNOWN = "unknown"


class SyncAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class RecurrencePattern:
    """Source-side recurrence description.

    ``recurrence_type`` keeps the raw provider string when it is not one of
    the known ``RecurrenceType`` values.
    """

    recurrence_type: RecurrenceType | str
    interval: int = 1
    days_of_week: DayOfWeek = DayOfWeek(0)


@dataclass
class SourceEvent:
    """An appointment read from the authoritative calendar."""

    uid: str
    summary: str
    start: datetime
    end: datetime
    description: str = ""
    is_recurring: bool = False
    recurrence: RecurrencePattern | None = None
    busy_status: BusyStatus = BusyStatus.BUSY


@dataclass
class CalendarEventRecord:
    """Mirror row linking a source event to its remote counterpart."""

    calendar_uid: str
    start: datetime
    end: datetime
    remote_id: str = ""
    summary: str = ""
    description: str = ""
    is_recurring: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class EventOutcome:
    """Result of one create/update/delete attempt."""

    action: SyncAction
    calendar_uid: str
    summary: str = ""
    ok: bool = True
    error: str = ""
    remote_id: str = ""


@dataclass
class SyncReport:
    """Statistics and per-event outcomes for one sync pass."""

    created: int = 0
    updated: int = 0
    deleted: int = 0
    unchanged: int = 0
    failed: int = 0
    outcomes: list[EventOutcome] = field(default_factory=list)

    def record(self, outcome: EventOutcome) -> EventOutcome:
        self.outcomes.append(outcome)
        if not outcome.ok:
            self.failed += 1
        elif outcome.action is SyncAction.CREATE:
            self.created += 1
        elif outcome.action is SyncAction.UPDATE:
            self.updated += 1
        elif outcome.action is SyncAction.DELETE:
            self.deleted += 1
        return outcome

    @property
    def failures(self) -> list[EventOutcome]:
        return [o for o in self.outcomes if not o.ok]


@dataclass
class SyncConfig:
    """Configuration for calendar sync operation."""

    google_calendar_id: str
    google_credentials: Path
    m365_client_id: str
    state_db_path: Path
    timezone: str = "UTC"
    google_subject: str | None = None
    m365_tenant_id: str = "common"
    m365_client_secret: str | None = None
    m365_user: str | None = None
    outlook_calendar_id: str | None = None
    token_cache_path: Path = DEFAULT_TOKEN_CACHE
    interval: int = DEFAULT_INTERVAL
    dry_run: bool = False
    verbose: bool = False
    yes: bool = False  # Auto-confirm without prompting

"""
Collaborator contracts consumed by the reconciliation engine.

The engine only talks to these protocols; concrete adapters live in
``graph_client``, ``google_client`` and ``db``, and the tests use in-memory
fakes.
"""

from datetime import datetime
from typing import Protocol

from outlook_google_sync.models import CalendarEventRecord
from outlook_google_sync.models import SourceEvent


class SourceEventReader(Protocol):
    def list_upcoming(self, window_start: datetime, window_end: datetime) -> list[SourceEvent]:
        """Return source events for the window, ordered by start time."""
        ...


class MirrorStore(Protocol):
    def query_active_or_recurring(self, today: datetime) -> list[CalendarEventRecord]:
        """Return recurring records plus records starting on/after ``today``."""
        ...

    def add(self, record: CalendarEventRecord) -> None: ...

    def update(self, record: CalendarEventRecord) -> None: ...

    def remove(self, record: CalendarEventRecord) -> None: ...


class RemoteCalendarClient(Protocol):
    def create(self, payload: dict) -> str:
        """Create an event and return the identifier assigned by the service."""
        ...

    def update(self, remote_id: str, payload: dict) -> None: ...

    def delete(self, remote_id: str) -> None: ...

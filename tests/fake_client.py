"""
In-memory fake collaborators for testing.

Duck-type-compatible stand-ins for GraphCalendarReader and GoogleCalendarClient.
No network connection is required; remote events are kept in a plain dict
keyed by remote id.
"""

from datetime import datetime

from outlook_google_sync.models import RemoteCalendarError
from outlook_google_sync.models import SourceEvent


class FakeSourceReader:
    """Returns a fixed list of source events and records the requested window."""

    def __init__(self, events: list[SourceEvent] | None = None):
        self.events: list[SourceEvent] = list(events or [])
        self.windows: list[tuple[datetime, datetime]] = []
        self.error: Exception | None = None

    def list_upcoming(self, window_start: datetime, window_end: datetime) -> list[SourceEvent]:
        self.windows.append((window_start, window_end))
        if self.error is not None:
            raise self.error
        return list(self.events)


class FakeRemoteClient:
    """In-memory stub that satisfies the RemoteCalendarClient contract."""

    def __init__(self):
        # remote_id → payload
        self.events: dict[str, dict] = {}
        self.creates: list[str] = []
        self.updates: list[str] = []
        self.deletes: list[str] = []
        # Summaries / remote ids whose calls should fail
        self.fail_create_summaries: set[str] = set()
        self.fail_update_ids: set[str] = set()
        self.fail_delete_ids: set[str] = set()
        self._next_id = 1

    # ------------------------------------------------------------------ #
    # RemoteCalendarClient interface                                       #
    # ------------------------------------------------------------------ #

    def create(self, payload: dict) -> str:
        if payload.get("summary") in self.fail_create_summaries:
            raise RemoteCalendarError(f"create rejected: {payload['summary']}", status=500)
        remote_id = f"remote-{self._next_id}"
        self._next_id += 1
        self.events[remote_id] = payload
        self.creates.append(remote_id)
        return remote_id

    def update(self, remote_id: str, payload: dict):
        if remote_id in self.fail_update_ids:
            raise RemoteCalendarError(f"update rejected: {remote_id}", status=500)
        self.events[remote_id] = payload
        self.updates.append(remote_id)

    def delete(self, remote_id: str):
        if remote_id in self.fail_delete_ids:
            raise RemoteCalendarError(f"delete rejected: {remote_id}", status=500)
        self.events.pop(remote_id, None)
        self.deletes.append(remote_id)

    # ------------------------------------------------------------------ #
    # Test helpers                                                         #
    # ------------------------------------------------------------------ #

    @property
    def event_count(self) -> int:
        return len(self.events)

    def reset_counters(self):
        """Clear the create/update/delete lists between sync runs."""
        self.creates.clear()
        self.updates.clear()
        self.deletes.clear()

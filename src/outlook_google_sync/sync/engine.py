"""
One-way Outlook → Google reconciliation pass.
"""

import logging
from collections.abc import Callable
from datetime import datetime

import pytz

from outlook_google_sync.interfaces import MirrorStore
from outlook_google_sync.interfaces import RemoteCalendarClient
from outlook_google_sync.interfaces import SourceEventReader
from outlook_google_sync.models import CalendarEventRecord
from outlook_google_sync.models import CalendarSyncError
from outlook_google_sync.models import ConfigError
from outlook_google_sync.models import EventOutcome
from outlook_google_sync.models import SourceEvent
from outlook_google_sync.models import SyncAction
from outlook_google_sync.models import SyncReport
from outlook_google_sync.sync.payload import build_event_payload


def start_of_day(moment: datetime) -> datetime:
    """Midnight of ``moment``'s day as a naive wall-clock datetime."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)


def one_year_after(moment: datetime) -> datetime:
    try:
        return moment.replace(year=moment.year + 1)
    except ValueError:
        # Feb 29 → Feb 28
        return moment.replace(year=moment.year + 1, day=28)


def has_changed(event: SourceEvent, record: CalendarEventRecord) -> bool:
    """True when any of the tracked fields differs between source and mirror."""
    return (
        record.summary != event.summary
        or record.start != event.start
        or record.end != event.end
        or record.description != event.description
    )


class ReconciliationEngine:
    """Brings the remote calendar and the mirror in line with the source.

    The source is authoritative: every pass re-reads the source window and the
    mirror, then creates, updates and deletes remote events one at a time.
    A failure affects only the event it happened on; the pass always attempts
    every event once.
    """

    def __init__(
        self,
        source: SourceEventReader,
        mirror: MirrorStore,
        remote: RemoteCalendarClient,
        timezone: str = "UTC",
        dry_run: bool = False,
        now: Callable[[], datetime] | None = None,
    ):
        try:
            self.tz = pytz.timezone(timezone)
        except pytz.UnknownTimeZoneError as e:
            raise ConfigError(f"Unknown timezone: {timezone}") from e
        self.source = source
        self.mirror = mirror
        self.remote = remote
        self.timezone = timezone
        self.dry_run = dry_run
        self._now = now or (lambda: datetime.now(self.tz))
        self.logger = logging.getLogger(__name__)

    def sync(self) -> SyncReport:
        """Run one sync pass.

        Failures of the two bulk reads propagate: without them there is
        nothing to diff against.
        """
        report = SyncReport()
        window_start = start_of_day(self._now())
        window_end = one_year_after(window_start)

        self.logger.info("Loading events from Outlook...")
        source_events = self.source.list_upcoming(window_start, window_end)
        self.logger.info(f"Loaded {len(source_events)} events from Outlook.")

        self.logger.info("Loading mirror records...")
        records = self.mirror.query_active_or_recurring(window_start)
        self.logger.info(f"Loaded {len(records)} mirror records.")

        lookup = {record.calendar_uid: record for record in records}

        self.logger.info(f"Processing {len(source_events)} source events...")
        for event in source_events:
            record = lookup.pop(event.uid, None)
            if record is None:
                report.record(self._create(event))
            elif has_changed(event, record):
                report.record(self._update(event, record))
            else:
                report.unchanged += 1

        # Anything left over has disappeared from the source
        self.logger.info("Checking for deletions...")
        for record in lookup.values():
            report.record(self._delete(record))

        self.logger.info(
            f"Sync complete: {report.created} created, {report.updated} updated, "
            f"{report.deleted} deleted, {report.failed} failed"
        )
        return report

    # ------------------------------------------------------------------ #
    # Per-event actions                                                    #
    # ------------------------------------------------------------------ #

    def _create(self, event: SourceEvent) -> EventOutcome:
        outcome = EventOutcome(SyncAction.CREATE, event.uid, event.summary)

        if self.dry_run:
            self.logger.info(f"[DRY RUN] Would CREATE event: {event.summary} ({event.uid})")
            return outcome

        try:
            payload = build_event_payload(event, self.timezone)
            remote_id = self.remote.create(payload)
            outcome.remote_id = remote_id
            self.mirror.add(
                CalendarEventRecord(
                    calendar_uid=event.uid,
                    remote_id=remote_id,
                    summary=event.summary,
                    start=event.start,
                    end=event.end,
                    description=event.description,
                    is_recurring=event.is_recurring,
                )
            )
        except CalendarSyncError as e:
            self.logger.error(f"Failed to create event {event.uid}: {e}")
            outcome.ok = False
            outcome.error = str(e)
            return outcome

        self.logger.debug(f"Created event {event.uid} as {remote_id}")
        return outcome

    def _update(self, event: SourceEvent, record: CalendarEventRecord) -> EventOutcome:
        outcome = EventOutcome(
            SyncAction.UPDATE, event.uid, event.summary, remote_id=record.remote_id
        )

        if self.dry_run:
            self.logger.info(
                f"[DRY RUN] Would UPDATE event: {event.summary} (remote: {record.remote_id})"
            )
            return outcome

        try:
            payload = build_event_payload(event, self.timezone)
            self.remote.update(record.remote_id, payload)

            record.summary = event.summary
            record.start = event.start
            record.end = event.end
            record.description = event.description
            record.is_recurring = event.is_recurring
            self.mirror.update(record)
        except CalendarSyncError as e:
            self.logger.error(f"Failed to update event {event.uid}: {e}")
            outcome.ok = False
            outcome.error = str(e)
            return outcome

        self.logger.debug(f"Updated event {event.uid}")
        return outcome

    def _delete(self, record: CalendarEventRecord) -> EventOutcome:
        outcome = EventOutcome(
            SyncAction.DELETE, record.calendar_uid, record.summary, remote_id=record.remote_id
        )

        if self.dry_run:
            self.logger.info(
                f"[DRY RUN] Would DELETE event: {record.summary} (remote: {record.remote_id})"
            )
            return outcome

        try:
            self.mirror.remove(record)
            self.remote.delete(record.remote_id)
        except CalendarSyncError as e:
            self.logger.error(f"Failed to delete event {record.calendar_uid}: {e}")
            outcome.ok = False
            outcome.error = str(e)
            return outcome

        self.logger.debug(f"Deleted event {record.calendar_uid} (remote: {record.remote_id})")
        return outcome

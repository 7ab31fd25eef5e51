"""
Clear operation: remove every mirrored event from Google and the mirror.
"""

from outlook_google_sync.db import MirrorDatabase
from outlook_google_sync.interfaces import RemoteCalendarClient
from outlook_google_sync.models import CalendarSyncError
from outlook_google_sync.models import EventOutcome
from outlook_google_sync.models import SyncAction
from outlook_google_sync.models import SyncReport


def perform_clear(
    mirror: MirrorDatabase,
    remote: RemoteCalendarClient,
    logger,
    dry_run: bool = False,
) -> SyncReport:
    """Delete only events we created in Google, leaving other events untouched."""
    logger.warning("CLEAR MODE: Removing synced events and clearing the mirror...")
    report = SyncReport()

    records = mirror.all_records()
    logger.info(f"Found {len(records)} tracked events")

    if dry_run:
        logger.info(f"[DRY RUN] Would delete {len(records)} synced events from Google")
        for record in records:
            logger.debug(f"[DRY RUN] Would delete: {record.summary} ({record.remote_id})")
            report.record(
                EventOutcome(SyncAction.DELETE, record.calendar_uid, record.summary)
            )
        return report

    for record in records:
        outcome = EventOutcome(
            SyncAction.DELETE, record.calendar_uid, record.summary, remote_id=record.remote_id
        )
        try:
            # Remote first: a record is only dropped once its remote event is gone.
            if record.remote_id:
                remote.delete(record.remote_id)
            mirror.remove(record)
        except CalendarSyncError as e:
            logger.error(f"Failed to clear {record.calendar_uid}: {e}")
            outcome.ok = False
            outcome.error = str(e)
        report.record(outcome)

    logger.info(f"Cleared {report.deleted} events ({report.failed} failed)")
    return report

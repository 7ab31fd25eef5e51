"""
Source event → Google Calendar event resource.
"""

from outlook_google_sync.models import BusyStatus
from outlook_google_sync.models import InvalidEventError
from outlook_google_sync.models import SourceEvent
from outlook_google_sync.recurrence import to_rrule

# WORKING_ELSEWHERE and UNKNOWN are absent: the status field is left unset.
_STATUS_BY_BUSY = {
    BusyStatus.BUSY: "confirmed",
    BusyStatus.OUT_OF_OFFICE: "confirmed",
    BusyStatus.TENTATIVE: "tentative",
    BusyStatus.FREE: "transparent",
}


def map_status(busy_status: BusyStatus) -> str | None:
    """Remote status for a busy indicator, or None when no override applies."""
    return _STATUS_BY_BUSY.get(busy_status)


def map_transparency(busy_status: BusyStatus) -> str:
    return "transparent" if busy_status == BusyStatus.FREE else "opaque"


def build_event_payload(event: SourceEvent, timezone: str) -> dict:
    """Build the remote payload for a create or update call.

    Raises InvalidEventError when the event ends before it starts.
    """
    if event.start > event.end:
        raise InvalidEventError(
            f"Event {event.uid} ends before it starts ({event.start} > {event.end})"
        )

    payload = {
        "summary": event.summary,
        "description": event.description,
        "start": {"dateTime": event.start.isoformat(), "timeZone": timezone},
        "end": {"dateTime": event.end.isoformat(), "timeZone": timezone},
    }

    if event.is_recurring and event.recurrence is not None:
        rule = to_rrule(event.recurrence)
        if rule:
            payload["recurrence"] = [rule]

    status = map_status(event.busy_status)
    if status is not None:
        payload["status"] = status

    payload["transparency"] = map_transparency(event.busy_status)
    return payload

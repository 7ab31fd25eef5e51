"""
Google Calendar API wrapper (remote side of the sync).
"""

import logging
from pathlib import Path

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .models import RemoteCalendarError

SCOPES = ["https://www.googleapis.com/auth/calendar"]

# Google answers 410 Gone for events that were already deleted.
_NOT_FOUND_STATUSES = frozenset({404, 410})

# Token refresh, socket and httplib2 failures raised while executing a request.
_TRANSPORT_ERRORS = (GoogleAuthError, httplib2.HttpLib2Error, OSError)

logger = logging.getLogger(__name__)


def is_not_found_error(e: Exception) -> bool:
    """Return True when Google reports that an event no longer exists."""
    return isinstance(e, RemoteCalendarError) and e.status in _NOT_FOUND_STATUSES


def _as_remote_error(e: HttpError, operation: str) -> RemoteCalendarError:
    status = e.resp.status if e.resp is not None else None
    return RemoteCalendarError(f"Google Calendar {operation} failed: {e}", status=status)


def _as_transport_error(e: Exception, operation: str) -> RemoteCalendarError:
    return RemoteCalendarError(
        f"Google Calendar {operation} failed: {type(e).__name__}: {e}"
    )


class GoogleCalendarClient:
    """Create/update/delete events in one Google calendar."""

    def __init__(self, calendar_id: str, credentials_path: Path, subject: str | None = None):
        self.calendar_id = calendar_id
        self.credentials_path = credentials_path
        self.subject = subject
        self.service = None

    def connect(self):
        """Load service-account credentials and build the Calendar v3 service."""
        try:
            creds = service_account.Credentials.from_service_account_file(
                str(self.credentials_path),
                scopes=SCOPES,
            )
            if self.subject:
                # Service account acts as this user (domain-wide delegation)
                creds = creds.with_subject(self.subject)
            self.service = build("calendar", "v3", credentials=creds, cache_discovery=False)
        except (OSError, ValueError, GoogleAuthError) as e:
            raise RemoteCalendarError(
                f"Failed to initialise Google Calendar service from {self.credentials_path}: {e}"
            ) from e

    def _events(self):
        if self.service is None:
            raise RemoteCalendarError("Client not connected")
        return self.service.events()

    def create(self, payload: dict) -> str:
        """Insert a new event and return the id Google assigned to it."""
        try:
            created = self._events().insert(calendarId=self.calendar_id, body=payload).execute()
        except HttpError as e:
            raise _as_remote_error(e, "insert") from e
        except _TRANSPORT_ERRORS as e:
            raise _as_transport_error(e, "insert") from e
        return created["id"]

    def update(self, remote_id: str, payload: dict):
        """Replace the event with the given id."""
        try:
            self._events().update(
                calendarId=self.calendar_id,
                eventId=remote_id,
                body=payload,
            ).execute()
        except HttpError as e:
            raise _as_remote_error(e, f"update of {remote_id}") from e
        except _TRANSPORT_ERRORS as e:
            raise _as_transport_error(e, f"update of {remote_id}") from e

    def delete(self, remote_id: str):
        """Delete an event; an event that is already gone is not an error."""
        try:
            self._events().delete(calendarId=self.calendar_id, eventId=remote_id).execute()
        except HttpError as e:
            error = _as_remote_error(e, f"delete of {remote_id}")
            if is_not_found_error(error):
                logger.debug(f"Google event {remote_id} already gone (externally deleted)")
                return
            raise error from e
        except _TRANSPORT_ERRORS as e:
            raise _as_transport_error(e, f"delete of {remote_id}") from e

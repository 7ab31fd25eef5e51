"""
Microsoft Graph calendar reader (source side of the sync).
"""

import logging
import re
from datetime import datetime
from pathlib import Path

import msal
import requests

from .models import BusyStatus
from .models import DayOfWeek
from .models import RecurrencePattern
from .models import RecurrenceType
from .models import SourceEvent
from .models import SourceReadError

GRAPH_URL = "https://graph.microsoft.com/v1.0"
DELEGATED_SCOPES = ["https://graph.microsoft.com/Calendars.Read"]
APP_SCOPES = ["https://graph.microsoft.com/.default"]

_SELECT = "id,iCalUId,subject,body,start,end,type,recurrence,showAs,isCancelled"
_PAGE_SIZE = 100
_REQUEST_TIMEOUT = 30

# Graph returns up to 7 fractional digits; datetime accepts at most 6.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")

_DAY_FLAGS = {
    "sunday": DayOfWeek.SUNDAY,
    "monday": DayOfWeek.MONDAY,
    "tuesday": DayOfWeek.TUESDAY,
    "wednesday": DayOfWeek.WEDNESDAY,
    "thursday": DayOfWeek.THURSDAY,
    "friday": DayOfWeek.FRIDAY,
    "saturday": DayOfWeek.SATURDAY,
}

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Graph JSON → model
# ---------------------------------------------------------------------------


def parse_graph_datetime(value: str) -> datetime:
    """Parse a Graph ``dateTimeTimeZone.dateTime`` into a naive wall-clock datetime."""
    value = _FRACTION_RE.sub(r"\1", value.rstrip("Z"))
    return datetime.fromisoformat(value).replace(tzinfo=None)


def parse_recurrence(recurrence: dict | None) -> RecurrencePattern | None:
    """Build a RecurrencePattern from a Graph ``patternedRecurrence``."""
    if not recurrence or not recurrence.get("pattern"):
        return None
    pattern = recurrence["pattern"]

    raw_type = pattern.get("type") or ""
    try:
        recurrence_type = RecurrenceType(raw_type)
    except ValueError:
        recurrence_type = raw_type

    mask = DayOfWeek(0)
    for day in pattern.get("daysOfWeek") or []:
        mask |= _DAY_FLAGS.get(day.lower(), DayOfWeek(0))

    return RecurrencePattern(
        recurrence_type=recurrence_type,
        interval=int(pattern.get("interval") or 1),
        days_of_week=mask,
    )


def parse_busy_status(value: str | None) -> BusyStatus:
    try:
        return BusyStatus(value)
    except ValueError:
        return BusyStatus.UNKNOWN


def parse_graph_event(item: dict) -> SourceEvent:
    """Transform a Graph event resource into a SourceEvent."""
    body = item.get("body") or {}
    recurrence = parse_recurrence(item.get("recurrence"))
    return SourceEvent(
        uid=item["iCalUId"],
        summary=item.get("subject") or "",
        start=parse_graph_datetime(item["start"]["dateTime"]),
        end=parse_graph_datetime(item["end"]["dateTime"]),
        description=body.get("content") or "",
        is_recurring=item.get("type") == "seriesMaster" or recurrence is not None,
        recurrence=recurrence,
        busy_status=parse_busy_status(item.get("showAs")),
    )


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class GraphAuth:
    """MSAL token provider.

    With a client secret the app-only client-credentials flow is used;
    otherwise a device-code login is performed once and the refresh token is
    kept in a file-backed cache.
    """

    def __init__(
        self,
        client_id: str,
        tenant_id: str = "common",
        client_secret: str | None = None,
        token_cache_path: Path | None = None,
    ):
        self.authority = f"https://login.microsoftonline.com/{tenant_id}"
        self.token_cache_path = token_cache_path
        self.cache = msal.SerializableTokenCache()
        if token_cache_path and token_cache_path.exists():
            self.cache.deserialize(token_cache_path.read_text())

        self.app_only = bool(client_secret)
        if self.app_only:
            self.scopes = APP_SCOPES
            self.app = msal.ConfidentialClientApplication(
                client_id=client_id,
                client_credential=client_secret,
                authority=self.authority,
                token_cache=self.cache,
            )
        else:
            self.scopes = DELEGATED_SCOPES
            self.app = msal.PublicClientApplication(
                client_id=client_id,
                authority=self.authority,
                token_cache=self.cache,
            )

    def _save_cache(self):
        if self.token_cache_path and self.cache.has_state_changed:
            self.token_cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.token_cache_path.write_text(self.cache.serialize())

    def get_access_token(self) -> str:
        if self.app_only:
            result = self.app.acquire_token_for_client(scopes=self.scopes)
        else:
            result = None
            accounts = self.app.get_accounts()
            if accounts:
                result = self.app.acquire_token_silent(self.scopes, account=accounts[0])
            if not result:
                flow = self.app.initiate_device_flow(scopes=self.scopes)
                if "user_code" not in flow:
                    raise SourceReadError(
                        f"Failed to start device code flow: {flow.get('error_description')}"
                    )
                logger.warning(flow["message"])
                result = self.app.acquire_token_by_device_flow(flow)

        self._save_cache()

        if not result or "access_token" not in result:
            detail = (result or {}).get("error_description", "no token returned")
            raise SourceReadError(f"Microsoft 365 authentication failed: {detail}")
        return result["access_token"]


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class GraphCalendarReader:
    """Reads upcoming events from an Outlook calendar through Microsoft Graph."""

    def __init__(
        self,
        auth: GraphAuth,
        timezone: str = "UTC",
        calendar_id: str | None = None,
        user: str | None = None,
        session: requests.Session | None = None,
    ):
        self.auth = auth
        self.timezone = timezone
        self.calendar_id = calendar_id
        self.user = user
        self.session = session or requests.Session()

    @property
    def events_url(self) -> str:
        owner = f"/users/{self.user}" if self.user else "/me"
        if self.calendar_id:
            return f"{GRAPH_URL}{owner}/calendars/{self.calendar_id}/events"
        return f"{GRAPH_URL}{owner}/calendar/events"

    def _get(self, url: str, params: dict | None = None) -> dict:
        try:
            # Token acquisition goes over requests too
            headers = {
                "Authorization": f"Bearer {self.auth.get_access_token()}",
                "Prefer": (
                    f'outlook.timezone="{self.timezone}", outlook.body-content-type="text"'
                ),
            }
            response = self.session.get(
                url, headers=headers, params=params, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise SourceReadError(f"Microsoft Graph request failed: {e}") from e

    def list_calendars(self) -> list[dict]:
        """Return ``{"id", "name", "owner", "is_default"}`` for every calendar."""
        owner = f"/users/{self.user}" if self.user else "/me"
        page = self._get(f"{GRAPH_URL}{owner}/calendars")
        calendars = []
        while True:
            for cal in page.get("value", []):
                calendars.append(
                    {
                        "id": cal["id"],
                        "name": cal.get("name") or "(unnamed)",
                        "owner": (cal.get("owner") or {}).get("address", ""),
                        "is_default": bool(cal.get("isDefaultCalendar")),
                    }
                )
            next_link = page.get("@odata.nextLink")
            if not next_link:
                return calendars
            page = self._get(next_link)

    def list_upcoming(self, window_start: datetime, window_end: datetime) -> list[SourceEvent]:
        """Return series masters plus single events inside the window, ordered by start."""
        start_str = window_start.strftime("%Y-%m-%dT%H:%M:%S")
        end_str = window_end.strftime("%Y-%m-%dT%H:%M:%S")
        params = {
            "$select": _SELECT,
            "$filter": (
                f"type eq 'seriesMaster' or "
                f"(start/dateTime ge '{start_str}' and end/dateTime le '{end_str}')"
            ),
            "$orderby": "start/dateTime",
            "$top": _PAGE_SIZE,
        }

        events: list[SourceEvent] = []
        page = self._get(self.events_url, params)
        while True:
            for item in page.get("value", []):
                if item.get("isCancelled"):
                    # Organizer cancelled; absence from the result removes the copy
                    logger.debug(f"Skipping cancelled event: {item.get('iCalUId')}")
                    continue
                try:
                    events.append(parse_graph_event(item))
                except (KeyError, ValueError) as e:
                    raise SourceReadError(f"Malformed Graph event {item.get('id')}: {e}") from e

            url = page.get("@odata.nextLink")
            if not url:
                break
            page = self._get(url)

        logger.debug(f"Read {len(events)} events from Microsoft Graph")
        return events

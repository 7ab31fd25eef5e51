"""
Outlook recurrence pattern → iCalendar RRULE translation.
"""

from outlook_google_sync.models import DayOfWeek
from outlook_google_sync.models import RecurrencePattern
from outlook_google_sync.models import RecurrenceType

_FREQUENCIES = {
    RecurrenceType.DAILY: "DAILY",
    RecurrenceType.WEEKLY: "WEEKLY",
    RecurrenceType.ABSOLUTE_MONTHLY: "MONTHLY",
    RecurrenceType.RELATIVE_MONTHLY: "MONTHLY",
    RecurrenceType.ABSOLUTE_YEARLY: "YEARLY",
    RecurrenceType.RELATIVE_YEARLY: "YEARLY",
}

# Monday first: BYDAY tokens are emitted in this order regardless of mask layout.
_BYDAY_ORDER = (
    (DayOfWeek.MONDAY, "MO"),
    (DayOfWeek.TUESDAY, "TU"),
    (DayOfWeek.WEDNESDAY, "WE"),
    (DayOfWeek.THURSDAY, "TH"),
    (DayOfWeek.FRIDAY, "FR"),
    (DayOfWeek.SATURDAY, "SA"),
    (DayOfWeek.SUNDAY, "SU"),
)


def to_rrule(pattern: RecurrencePattern) -> str:
    """
    Translate a recurrence pattern into a single-line ``RRULE:`` string.

    Only FREQ, INTERVAL and (for weekly patterns) BYDAY are emitted.  An
    unsupported recurrence type returns an empty string; callers must then
    omit the recurrence field instead of sending a malformed rule.
    """
    frequency = _FREQUENCIES.get(pattern.recurrence_type)
    if frequency is None:
        return ""

    rule = f"RRULE:FREQ={frequency}"

    if pattern.interval > 1:
        rule += f";INTERVAL={pattern.interval}"

    if frequency != "WEEKLY":
        return rule

    days = [token for day, token in _BYDAY_ORDER if pattern.days_of_week & day]
    if days:
        rule += ";BYDAY=" + ",".join(days)

    return rule

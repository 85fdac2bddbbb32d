"""Calendar-day classification of lead follow-up dates.

All comparisons happen on calendar dates in one configured time zone
(``REMINDER_TIMEZONE``, UTC by default): the current instant is
converted to that zone and truncated to a date, and the stored
follow-up date is already a plain date.  Naive instants are read as UTC.
"""

from datetime import date, datetime, timezone, tzinfo
from functools import lru_cache
from typing import Any, Dict, Iterable, Optional
from zoneinfo import ZoneInfo

from leadflow.core.constants import CLOSED_STATUSES
from leadflow.schemas.common import FollowUpClassification


@lru_cache(maxsize=32)
def get_zone(name: str) -> tzinfo:
    """Resolve a time-zone name (``ZoneInfoNotFoundError`` if unknown)."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_today(now: datetime, tz: tzinfo = timezone.utc) -> date:
    """Return the calendar day that *now* falls on in *tz*."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def _as_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _status_value(status: Any) -> Optional[str]:
    return getattr(status, "value", status)


def classify_follow_up(
    next_follow_up_date: Any,
    status: Any,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> FollowUpClassification:
    """Classify a follow-up date relative to *now*.

    Closed leads (Won/Lost) and leads without a date are ``none``;
    otherwise the date is ``overdue`` before today, ``due-today`` on
    today and ``upcoming`` after it.
    """
    if _status_value(status) in CLOSED_STATUSES:
        return FollowUpClassification.none

    follow_up = _as_date(next_follow_up_date)
    if follow_up is None:
        return FollowUpClassification.none

    today = local_today(now, tz)
    if follow_up < today:
        return FollowUpClassification.overdue
    if follow_up == today:
        return FollowUpClassification.due_today
    return FollowUpClassification.upcoming


def classify_lead(lead: Any, now: datetime, tz: tzinfo = timezone.utc) -> FollowUpClassification:
    """Classify anything with ``next_follow_up_date`` and ``status`` attributes."""
    return classify_follow_up(lead.next_follow_up_date, lead.status, now, tz)


def summarize_follow_ups(
    leads: Iterable[Any], now: datetime, tz: tzinfo = timezone.utc
) -> Dict[str, int]:
    """Count overdue and due-today leads (the dashboard urgency badges)."""
    overdue = 0
    due_today = 0
    for lead in leads:
        classification = classify_lead(lead, now, tz)
        if classification is FollowUpClassification.overdue:
            overdue += 1
        elif classification is FollowUpClassification.due_today:
            due_today += 1
    return {
        "overdue_count": overdue,
        "due_today_count": due_today,
        "total_urgent": overdue + due_today,
    }

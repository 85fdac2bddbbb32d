import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import List, Sequence

from leadflow.models.lead import Lead
from leadflow.models.sticky_note import StickyNote
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.sticky_note_repository import StickyNoteRepository
from leadflow.services.follow_up_classifier import local_today

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderFieldMap:
    """Column names the reminder scan reads and writes on the lead table."""

    date_field: str = "next_follow_up_date"
    status_field: str = "status"
    upcoming_flag: str = "upcoming_reminder_sent"
    overdue_flag: str = "overdue_reminder_sent"
    recipient_field: str = "assignee"


DEFAULT_FIELD_MAP = ReminderFieldMap()


@dataclass(frozen=True)
class ReminderWindow:
    """Reference points for one reminder pass, all derived from one ``now``."""

    now: datetime
    today: date
    upcoming_day: date

    @classmethod
    def build(
        cls, now: datetime, upcoming_days: int, tz: tzinfo = timezone.utc
    ) -> "ReminderWindow":
        if upcoming_days < 1:
            raise ValueError("upcoming_days must be at least 1")
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        today = local_today(now, tz)
        return cls(now=now, today=today, upcoming_day=today + timedelta(days=upcoming_days))


@dataclass
class LeadCandidates:
    upcoming: List[Lead]
    overdue: List[Lead]


def enforce_exclusive(
    upcoming: Sequence[Lead], overdue: Sequence[Lead]
) -> List[Lead]:
    """Drop from *upcoming* any lead that is also overdue.

    The two windows cannot overlap for a consistent snapshot; if they do,
    overdue wins and the overlap is logged.
    """
    overdue_ids = {lead.id for lead in overdue}
    clashing = [lead.id for lead in upcoming if lead.id in overdue_ids]
    if clashing:
        logger.error(
            "Leads %s matched both reminder windows; keeping them as overdue",
            clashing,
        )
    return [lead for lead in upcoming if lead.id not in overdue_ids]


async def select_lead_candidates(
    lead_repo: LeadRepository,
    window: ReminderWindow,
    fields: ReminderFieldMap = DEFAULT_FIELD_MAP,
) -> LeadCandidates:
    """Read both lead candidate sets for *window*."""
    upcoming = await lead_repo.find_upcoming_reminder_candidates(
        window.upcoming_day,
        date_field=fields.date_field,
        flag_field=fields.upcoming_flag,
        status_field=fields.status_field,
    )
    overdue = await lead_repo.find_overdue_reminder_candidates(
        window.today,
        date_field=fields.date_field,
        flag_field=fields.overdue_flag,
        status_field=fields.status_field,
    )
    return LeadCandidates(upcoming=enforce_exclusive(upcoming, overdue), overdue=overdue)


async def select_sticky_note_candidates(
    note_repo: StickyNoteRepository, window: ReminderWindow
) -> List[StickyNote]:
    return await note_repo.find_due_reminders(window.now)

"""Idempotent delivery of follow-up and sticky-note reminders.

Each candidate is handled as read, send, then write-flag: the flag is
set and committed only after the sender confirmed delivery, so a failed
send is retried on the next pass.  A flag write that fails after a
successful send can lead to a second email later (at-least-once).
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from leadflow.models.lead import Lead
from leadflow.models.sticky_note import StickyNote
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.sticky_note_repository import StickyNoteRepository
from leadflow.schemas.common import ReminderKind
from leadflow.schemas.reminder import ReminderRunSummary
from leadflow.services.email_sender import EmailSender
from leadflow.services.reminder_windows import (
    DEFAULT_FIELD_MAP,
    ReminderFieldMap,
)

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_recipient(value: Optional[str], domain: Optional[str] = None) -> Optional[str]:
    """Turn an assignee/owner identifier into a deliverable address.

    Bare identifiers (no ``@``) get *domain* appended when one is
    configured.  Returns ``None`` when no well-formed address results.
    """
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    if "@" not in candidate and domain:
        candidate = f"{candidate}@{domain.lstrip('@')}"
    if not _EMAIL_PATTERN.match(candidate):
        return None
    return candidate


def merge_recipients(primary: str, others: Iterable[str]) -> List[str]:
    """Primary recipient first, then *others*, without case-insensitive repeats."""
    seen = set()
    merged: List[str] = []
    for address in [primary, *others]:
        if not address:
            continue
        key = address.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        merged.append(address.strip())
    return merged


@dataclass(frozen=True)
class LeadReminder:
    """Plain snapshot of a lead candidate, detached from the ORM session."""

    lead_id: int
    lead_name: str
    company_name: str
    follow_up_date: date
    assignee: Optional[str]

    @classmethod
    def from_lead(cls, lead: Lead, fields: ReminderFieldMap = DEFAULT_FIELD_MAP) -> "LeadReminder":
        return cls(
            lead_id=lead.id,
            lead_name=lead.lead_name,
            company_name=lead.company_name,
            follow_up_date=getattr(lead, fields.date_field),
            assignee=getattr(lead, fields.recipient_field),
        )


@dataclass(frozen=True)
class NoteReminder:
    """Plain snapshot of a due sticky note."""

    note_id: int
    content: str
    reminder_at: datetime
    address: Optional[str]
    lead_name: Optional[str]

    @classmethod
    def from_note(cls, note: StickyNote) -> "NoteReminder":
        address = note.email or (note.owner.email if note.owner is not None else None)
        lead_name = None
        if note.lead is not None:
            lead_name = f"{note.lead.lead_name} ({note.lead.company_name})"
        return cls(
            note_id=note.id,
            content=note.content,
            reminder_at=note.reminder_at,
            address=address,
            lead_name=lead_name,
        )


def compose_lead_reminder(
    kind: ReminderKind, reminder: LeadReminder, upcoming_days: int
) -> tuple[str, str]:
    """Return ``(subject, body)`` for a lead reminder email."""
    name = reminder.lead_name
    when = reminder.follow_up_date.strftime("%d %b %Y")
    assignee = reminder.assignee or "unassigned"
    if kind is ReminderKind.overdue:
        subject = f"OVERDUE: Follow-up with {name}"
        body = (
            f"Your follow-up with {name} ({reminder.company_name}) was due on "
            f"{when} and is now overdue. Please action this immediately.\n\n"
            f"Assignee: {assignee}\n"
            "This notification was sent to the assignee and all administrators."
        )
    else:
        subject = f"Upcoming Follow-up: {name}"
        body = (
            f"Reminder: a follow-up with {name} ({reminder.company_name}) is "
            f"scheduled for {when} ({upcoming_days} days from now).\n\n"
            f"Assignee: {assignee}\n"
            "This notification was sent to the assignee and all administrators."
        )
    return subject, body


def compose_note_reminder(reminder: NoteReminder) -> tuple[str, str]:
    lines = [f"Reminder: {reminder.content}"]
    if reminder.lead_name:
        lines.append(f"Linked Lead: {reminder.lead_name}")
    lines.append(f"Time: {reminder.reminder_at.isoformat()}")
    return "Reminder from LeadFlow CRM", "\n".join(lines)


class ReminderDispatcher:
    """Sends reminders for snapshot candidates and records their flags."""

    def __init__(
        self,
        sender: EmailSender,
        upcoming_days: int,
        email_domain: Optional[str] = None,
        fields: ReminderFieldMap = DEFAULT_FIELD_MAP,
    ) -> None:
        self._sender = sender
        self._upcoming_days = upcoming_days
        self._email_domain = email_domain or None
        self._fields = fields

    def _flag_for(self, kind: ReminderKind) -> str:
        if kind is ReminderKind.overdue:
            return self._fields.overdue_flag
        return self._fields.upcoming_flag

    async def _deliver(self, recipients: List[str], subject: str, body: str) -> bool:
        try:
            return bool(await self._sender.send(recipients, subject, body))
        except Exception:
            logger.error("Email sender raised for '%s'", subject, exc_info=True)
            return False

    async def dispatch_leads(
        self,
        kind: ReminderKind,
        reminders: Sequence[LeadReminder],
        admin_emails: Sequence[str],
        lead_repo: LeadRepository,
        summary: ReminderRunSummary,
    ) -> None:
        counts = summary.counts[kind]
        counts.candidates += len(reminders)
        flag = self._flag_for(kind)

        for reminder in reminders:
            recipient = normalize_recipient(reminder.assignee, self._email_domain)
            if recipient is None:
                logger.warning(
                    "Skipping %s reminder for lead %s: no valid assignee address (%r)",
                    kind.value,
                    reminder.lead_id,
                    reminder.assignee,
                )
                counts.skipped += 1
                continue

            subject, body = compose_lead_reminder(kind, reminder, self._upcoming_days)
            recipients = merge_recipients(recipient, admin_emails)
            if not await self._deliver(recipients, subject, body):
                logger.warning(
                    "%s reminder for lead %s not delivered; will retry next run",
                    kind.value,
                    reminder.lead_id,
                )
                counts.failed += 1
                continue

            counts.sent += 1
            try:
                marked = await lead_repo.mark_flag(
                    reminder.lead_id, flag, reminder.follow_up_date, self._fields.date_field
                )
                await lead_repo.commit()
            except SQLAlchemyError:
                logger.error(
                    "Sent %s reminder for lead %s but could not record %s",
                    kind.value,
                    reminder.lead_id,
                    flag,
                    exc_info=True,
                )
                counts.flag_update_failed += 1
                await lead_repo.rollback()
                continue
            if not marked:
                logger.info(
                    "Lead %s was rescheduled after %s; %s left unset for the new date",
                    reminder.lead_id,
                    reminder.follow_up_date,
                    flag,
                )
                continue
            logger.info("Sent %s reminder for lead %s", kind.value, reminder.lead_id)

    async def dispatch_notes(
        self,
        reminders: Sequence[NoteReminder],
        note_repo: StickyNoteRepository,
        summary: ReminderRunSummary,
    ) -> None:
        counts = summary.counts[ReminderKind.sticky_note]
        counts.candidates += len(reminders)

        for reminder in reminders:
            recipient = normalize_recipient(reminder.address, self._email_domain)
            if recipient is None:
                logger.warning(
                    "Skipping sticky note %s: no valid owner address (%r)",
                    reminder.note_id,
                    reminder.address,
                )
                counts.skipped += 1
                continue

            subject, body = compose_note_reminder(reminder)
            if not await self._deliver([recipient], subject, body):
                logger.warning("Sticky note %s reminder not delivered", reminder.note_id)
                counts.failed += 1
                continue

            counts.sent += 1
            try:
                await note_repo.mark_sent(reminder.note_id)
                await note_repo.commit()
            except SQLAlchemyError:
                logger.error(
                    "Sent sticky note %s reminder but could not mark it sent",
                    reminder.note_id,
                    exc_info=True,
                )
                counts.flag_update_failed += 1
                await note_repo.rollback()

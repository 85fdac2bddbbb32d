import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.clock import Clock, SystemClock
from leadflow.core.config import settings
from leadflow.core.exceptions import ReminderQueryError
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.sticky_note_repository import StickyNoteRepository
from leadflow.repositories.user_repository import UserRepository
from leadflow.schemas.common import ReminderKind, ReminderRunStatus
from leadflow.schemas.reminder import ReminderRunSummary
from leadflow.services.email_sender import EmailSender, build_email_sender
from leadflow.services.follow_up_classifier import get_zone
from leadflow.services.reminder_dispatcher import (
    LeadReminder,
    NoteReminder,
    ReminderDispatcher,
)
from leadflow.services.reminder_windows import (
    DEFAULT_FIELD_MAP,
    ReminderFieldMap,
    ReminderWindow,
    select_lead_candidates,
    select_sticky_note_candidates,
)

logger = logging.getLogger(__name__)


@dataclass
class _Targets:
    upcoming: List[LeadReminder] = field(default_factory=list)
    overdue: List[LeadReminder] = field(default_factory=list)
    notes: List[NoteReminder] = field(default_factory=list)
    admin_emails: List[str] = field(default_factory=list)


async def _load_targets(
    session: AsyncSession, window: ReminderWindow, fields: ReminderFieldMap
) -> _Targets:
    """Read every candidate set and snapshot it into plain values."""
    try:
        leads = await select_lead_candidates(LeadRepository(session), window, fields)
        notes = await select_sticky_note_candidates(
            StickyNoteRepository(session), window
        )
        targets = _Targets(
            upcoming=[LeadReminder.from_lead(lead, fields) for lead in leads.upcoming],
            overdue=[LeadReminder.from_lead(lead, fields) for lead in leads.overdue],
            notes=[NoteReminder.from_note(note) for note in notes],
        )
        if targets.upcoming or targets.overdue:
            targets.admin_emails = await UserRepository(session).active_admin_emails()
    except (SQLAlchemyError, OSError) as exc:
        raise ReminderQueryError(f"Reminder candidate query failed: {exc}") from exc
    # End the read transaction before any email goes out
    await session.rollback()
    return targets


async def run_reminder_pass(
    session_factory: Callable[..., AsyncSession],
    sender: Optional[EmailSender] = None,
    clock: Optional[Clock] = None,
    upcoming_days: Optional[int] = None,
    timezone_name: Optional[str] = None,
    email_domain: Optional[str] = None,
    fields: ReminderFieldMap = DEFAULT_FIELD_MAP,
) -> ReminderRunSummary:
    """One-shot: send every due reminder and record the sent flags.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession`` (e.g. ``AsyncSessionLocal``).
        sender: Email capability; built from settings when omitted.
        clock: Source of "now"; read exactly once per pass.

    Returns a :class:`ReminderRunSummary`.  Query failures are reported
    as ``failed`` instead of raised; individual send or flag failures
    make the pass ``partial_failure`` without stopping it.
    """
    sender = sender or build_email_sender()
    clock = clock or SystemClock()
    days = upcoming_days if upcoming_days is not None else settings.UPCOMING_REMINDER_DAYS
    tz = get_zone(timezone_name or settings.REMINDER_TIMEZONE)
    domain = email_domain if email_domain is not None else settings.ASSIGNEE_EMAIL_DOMAIN

    window = ReminderWindow.build(clock.now(), days, tz)
    summary = ReminderRunSummary(reference_time=window.now)
    dispatcher = ReminderDispatcher(sender, days, email_domain=domain, fields=fields)

    logger.info(
        "Reminder pass started: overdue before %s, upcoming on %s, notes due by %s",
        window.today,
        window.upcoming_day,
        window.now.isoformat(),
    )

    async with session_factory() as session:
        try:
            targets = await _load_targets(session, window, fields)
        except ReminderQueryError as exc:
            logger.error("Reminder pass aborted: %s", exc.detail, exc_info=True)
            summary.status = ReminderRunStatus.failed
            summary.error = "Reminder candidate query failed"
            return summary

        logger.info(
            "Reminder candidates: %d upcoming, %d overdue, %d sticky note(s)",
            len(targets.upcoming),
            len(targets.overdue),
            len(targets.notes),
        )

        lead_repo = LeadRepository(session)
        await dispatcher.dispatch_leads(
            ReminderKind.overdue, targets.overdue, targets.admin_emails, lead_repo, summary
        )
        await dispatcher.dispatch_leads(
            ReminderKind.upcoming, targets.upcoming, targets.admin_emails, lead_repo, summary
        )
        await dispatcher.dispatch_notes(
            targets.notes, StickyNoteRepository(session), summary
        )

    if summary.total_failed:
        summary.status = ReminderRunStatus.partial_failure
    logger.info(
        "Reminder pass finished: status=%s sent=%d failed=%d",
        summary.status.value,
        summary.total_sent,
        summary.total_failed,
    )
    return summary


async def start_reminder_loop(
    session_factory: Callable[..., AsyncSession],
    interval_seconds: int,
    sender: Optional[EmailSender] = None,
) -> None:
    """Infinite loop that runs a reminder pass on a fixed interval."""
    logger.info("Reminder background task started (interval=%ds)", interval_seconds)
    while True:
        try:
            await run_reminder_pass(session_factory, sender=sender)
        except Exception:
            logger.error("Reminder cycle failed", exc_info=True)
        await asyncio.sleep(interval_seconds)

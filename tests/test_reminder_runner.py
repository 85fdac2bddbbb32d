"""End-to-end reminder passes against in-memory repositories."""

from datetime import date, datetime, timezone
from types import SimpleNamespace
from typing import List
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from leadflow.core.clock import FixedClock
from leadflow.core.constants import CLOSED_STATUSES
from leadflow.schemas.common import ReminderKind, ReminderRunStatus
from leadflow.services import reminder_runner
from leadflow.services.reminder_runner import run_reminder_pass

NOW = datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)


class _FakeDb:
    """Rows shared by every fake repository in one test."""

    def __init__(self, leads=None, notes=None, admins=None):
        self.leads = leads or []
        self.notes = notes or []
        self.admins = admins or []
        self.fail_queries = False


class _FakeLeadRepo:
    def __init__(self, db: _FakeDb):
        self.db = db

    def _check(self):
        if self.db.fail_queries:
            raise OperationalError("SELECT", {}, Exception("connection refused"))

    async def find_upcoming_reminder_candidates(
        self, target_day, date_field, flag_field, status_field
    ):
        self._check()
        return [
            lead for lead in self.db.leads
            if getattr(lead, date_field) == target_day
            and not getattr(lead, flag_field)
            and getattr(lead, status_field) not in CLOSED_STATUSES
        ]

    async def find_overdue_reminder_candidates(
        self, today, date_field, flag_field, status_field
    ):
        self._check()
        return [
            lead for lead in self.db.leads
            if getattr(lead, date_field) is not None
            and getattr(lead, date_field) < today
            and not getattr(lead, flag_field)
            and getattr(lead, status_field) not in CLOSED_STATUSES
        ]

    async def mark_flag(self, lead_id, flag_field, follow_up_date, date_field):
        for lead in self.db.leads:
            if lead.id == lead_id and getattr(lead, date_field) == follow_up_date:
                setattr(lead, flag_field, True)
                return True
        return False

    async def commit(self):
        pass

    async def rollback(self):
        pass


class _FakeNoteRepo:
    def __init__(self, db: _FakeDb):
        self.db = db

    async def find_due_reminders(self, now):
        return [n for n in self.db.notes if not n.is_reminder_sent and n.reminder_at <= now]

    async def mark_sent(self, note_id):
        for note in self.db.notes:
            if note.id == note_id:
                note.is_reminder_sent = True

    async def commit(self):
        pass

    async def rollback(self):
        pass


class _FakeUserRepo:
    def __init__(self, db: _FakeDb):
        self.db = db

    async def active_admin_emails(self) -> List[str]:
        return list(self.db.admins)


class _FakeSession:
    async def rollback(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


def _lead(lead_id, follow_up, status="New", **flags):
    return SimpleNamespace(
        id=lead_id,
        lead_name=f"Lead {lead_id}",
        company_name="Acme",
        assignee="emp@leadflow.io",
        status=status,
        next_follow_up_date=follow_up,
        overdue_reminder_sent=flags.get("overdue", False),
        upcoming_reminder_sent=flags.get("upcoming", False),
    )


def _sticky(note_id, reminder_at, sent=False):
    return SimpleNamespace(
        id=note_id,
        content="Call back",
        reminder_at=reminder_at,
        is_reminder_sent=sent,
        email="owner@leadflow.io",
        owner=None,
        lead=None,
    )


@pytest.fixture
def fake_db(monkeypatch) -> _FakeDb:
    db = _FakeDb(admins=["admin@leadflow.io"])
    monkeypatch.setattr(reminder_runner, "LeadRepository", lambda session: _FakeLeadRepo(db))
    monkeypatch.setattr(reminder_runner, "StickyNoteRepository", lambda session: _FakeNoteRepo(db))
    monkeypatch.setattr(reminder_runner, "UserRepository", lambda session: _FakeUserRepo(db))
    return db


def _sender(result=True) -> AsyncMock:
    sender = AsyncMock()
    sender.send = AsyncMock(return_value=result)
    return sender


async def _run(sender, clock=None):
    return await run_reminder_pass(
        _FakeSession,
        sender=sender,
        clock=clock or FixedClock(NOW),
        upcoming_days=4,
        timezone_name="UTC",
        email_domain="",
    )


class TestReminderPass:
    @pytest.mark.asyncio
    async def test_sends_each_due_reminder_once(self, fake_db):
        fake_db.leads = [
            _lead(1, date(2025, 1, 14)),                  # upcoming
            _lead(2, date(2025, 1, 9)),                   # overdue
            _lead(3, date(2025, 1, 5), status="Won"),     # closed
            _lead(4, date(2025, 1, 8), overdue=True),     # already reminded
            _lead(5, date(2025, 1, 12)),                  # not yet in window
        ]
        fake_db.notes = [
            _sticky(1, datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)),
            _sticky(2, datetime(2025, 1, 10, 11, 0, tzinfo=timezone.utc)),
        ]
        sender = _sender()

        summary = await _run(sender)

        assert summary.status is ReminderRunStatus.success
        assert summary.counts[ReminderKind.upcoming].sent == 1
        assert summary.counts[ReminderKind.overdue].sent == 1
        assert summary.counts[ReminderKind.sticky_note].sent == 1
        assert sender.send.await_count == 3
        assert fake_db.leads[0].upcoming_reminder_sent is True
        assert fake_db.leads[1].overdue_reminder_sent is True
        assert fake_db.leads[2].overdue_reminder_sent is False
        assert fake_db.notes[0].is_reminder_sent is True
        assert fake_db.notes[1].is_reminder_sent is False

    @pytest.mark.asyncio
    async def test_second_pass_sends_nothing(self, fake_db):
        fake_db.leads = [_lead(1, date(2025, 1, 14)), _lead(2, date(2025, 1, 9))]
        sender = _sender()

        await _run(sender)
        second = await _run(sender)

        assert sender.send.await_count == 2
        assert second.total_sent == 0
        assert second.status is ReminderRunStatus.success

    @pytest.mark.asyncio
    async def test_failed_sends_are_retried_next_pass(self, fake_db):
        fake_db.leads = [_lead(1, date(2025, 1, 9))]

        first = await _run(_sender(False))
        retry_sender = _sender()
        second = await _run(retry_sender)

        assert first.status is ReminderRunStatus.partial_failure
        assert first.counts[ReminderKind.overdue].failed == 1
        assert second.counts[ReminderKind.overdue].sent == 1
        retry_sender.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_upcoming_lead_becomes_overdue_later(self, fake_db):
        """The upcoming flag does not suppress the later overdue reminder."""
        fake_db.leads = [_lead(1, date(2025, 1, 14))]
        clock = FixedClock(NOW)
        sender = _sender()

        await _run(sender, clock)
        clock.advance_to(datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc))
        later = await _run(sender, clock)

        assert later.counts[ReminderKind.overdue].sent == 1
        assert fake_db.leads[0].upcoming_reminder_sent is True
        assert fake_db.leads[0].overdue_reminder_sent is True

    @pytest.mark.asyncio
    async def test_reschedule_during_send_keeps_new_date_remindable(self, fake_db):
        fake_db.leads = [_lead(1, date(2025, 1, 14))]
        clock = FixedClock(NOW)

        async def _send_while_rescheduling(to, subject, body):
            fake_db.leads[0].next_follow_up_date = date(2025, 1, 20)
            return True

        sender = AsyncMock()
        sender.send = AsyncMock(side_effect=_send_while_rescheduling)

        await _run(sender, clock)
        assert fake_db.leads[0].upcoming_reminder_sent is False

        clock.advance_to(datetime(2025, 1, 16, 8, 0, tzinfo=timezone.utc))
        later = await _run(_sender(), clock)

        assert later.counts[ReminderKind.upcoming].sent == 1
        assert fake_db.leads[0].upcoming_reminder_sent is True

    @pytest.mark.asyncio
    async def test_admins_copied_on_lead_reminders(self, fake_db):
        fake_db.leads = [_lead(1, date(2025, 1, 9))]
        sender = _sender()

        await _run(sender)

        assert sender.send.await_args.args[0] == [
            "emp@leadflow.io",
            "admin@leadflow.io",
        ]

    @pytest.mark.asyncio
    async def test_query_failure_fails_the_pass(self, fake_db):
        fake_db.leads = [_lead(1, date(2025, 1, 9))]
        fake_db.fail_queries = True
        sender = _sender()

        summary = await _run(sender)

        assert summary.status is ReminderRunStatus.failed
        assert summary.error == "Reminder candidate query failed"
        sender.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nothing_due(self, fake_db):
        summary = await _run(_sender())

        assert summary.status is ReminderRunStatus.success
        assert summary.total_sent == 0
        assert summary.reference_time == NOW

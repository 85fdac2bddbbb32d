from datetime import timedelta, tzinfo

from leadflow.core.clock import Clock
from leadflow.core.constants import DASHBOARD_TREND_DAYS, LEAD_PRIORITIES, LEAD_STATUSES
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.schemas.dashboard import DailyLeadCount, DashboardOut
from leadflow.services import access_policy
from leadflow.services.follow_up_classifier import local_today, summarize_follow_ups
from leadflow.services.session_service import UserSession


class DashboardService:
    """Pipeline metrics over the leads the caller can see."""

    def __init__(self, clock: Clock, tz: tzinfo) -> None:
        self._clock = clock
        self._tz = tz

    async def get_dashboard(
        self, session: UserSession, lead_repo: LeadRepository
    ) -> DashboardOut:
        scope = access_policy.lead_scope(session)
        now = self._clock.now()

        raw_status = await lead_repo.count_by("status", assignee=scope)
        raw_priority = await lead_repo.count_by("priority", assignee=scope)
        by_status = {status: raw_status.get(status, 0) for status in LEAD_STATUSES}
        by_priority = {p: raw_priority.get(p, 0) for p in LEAD_PRIORITIES}
        total = sum(by_status.values())
        won = by_status["Won"]

        urgency = summarize_follow_ups(
            await lead_repo.list(assignee=scope), now, self._tz
        )

        today = local_today(now, self._tz)
        since = now - timedelta(days=DASHBOARD_TREND_DAYS)
        per_day = await lead_repo.created_per_day(since, assignee=scope)
        created = [
            DailyLeadCount(day=day, count=per_day.get(day, 0))
            for day in (
                today - timedelta(days=offset)
                for offset in range(DASHBOARD_TREND_DAYS - 1, -1, -1)
            )
        ]

        return DashboardOut(
            total_leads=total,
            by_status=by_status,
            by_priority=by_priority,
            won_leads=won,
            conversion_rate=round(won / total * 100, 1) if total else 0.0,
            overdue_count=urgency["overdue_count"],
            due_today_count=urgency["due_today_count"],
            total_urgent=urgency["total_urgent"],
            created_per_day=created,
        )

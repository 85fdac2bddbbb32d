from typing import Any, List, Optional

from sqlalchemy import func, select

from leadflow.models.call_log import CallLog
from leadflow.models.follow_up import FollowUpHistory
from leadflow.models.lead import Lead
from leadflow.repositories.base import BaseRepository


class ActivityRepository(BaseRepository):
    """Append-only follow-up history and call logs."""

    async def create_follow_up(self, **kwargs: Any) -> FollowUpHistory:
        entry = FollowUpHistory(**kwargs)
        self._db.add(entry)
        await self._db.flush()
        return entry

    async def create_call_log(self, **kwargs: Any) -> CallLog:
        entry = CallLog(**kwargs)
        self._db.add(entry)
        await self._db.flush()
        return entry

    async def list_follow_ups(
        self, lead_id: Optional[int] = None, assignee: Optional[str] = None
    ) -> List[FollowUpHistory]:
        """Follow-up entries, newest first, optionally scoped."""
        query = select(FollowUpHistory)
        if lead_id is not None:
            query = query.where(FollowUpHistory.lead_id == lead_id)
        if assignee is not None:
            query = query.join(Lead, Lead.id == FollowUpHistory.lead_id).where(
                func.lower(Lead.assignee) == assignee.lower()
            )
        query = query.order_by(FollowUpHistory.created_at.desc())
        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def list_call_logs(
        self, lead_id: Optional[int] = None, assignee: Optional[str] = None
    ) -> List[CallLog]:
        """Call logs, newest first, optionally scoped."""
        query = select(CallLog)
        if lead_id is not None:
            query = query.where(CallLog.lead_id == lead_id)
        if assignee is not None:
            query = query.join(Lead, Lead.id == CallLog.lead_id).where(
                func.lower(Lead.assignee) == assignee.lower()
            )
        query = query.order_by(CallLog.created_at.desc())
        result = await self._db.execute(query)
        return list(result.scalars().all())

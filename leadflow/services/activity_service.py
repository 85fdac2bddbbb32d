from typing import List, Optional

from leadflow.core.exceptions import LeadNotFoundError
from leadflow.repositories.activity_repository import ActivityRepository
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.schemas.activity import (
    CallLogCreate,
    CallLogOut,
    FollowUpCreate,
    FollowUpOut,
)
from leadflow.services import access_policy
from leadflow.services.session_service import UserSession


class ActivityService:
    """Follow-up history and call logs attached to leads."""

    async def _ensure_lead(
        self, session: UserSession, lead_id: int, lead_repo: LeadRepository
    ) -> None:
        lead = await lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        access_policy.ensure_can_access_lead(session, lead)

    async def add_follow_up(
        self,
        session: UserSession,
        lead_id: int,
        data: FollowUpCreate,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> FollowUpOut:
        await self._ensure_lead(session, lead_id, lead_repo)
        entry = await activity_repo.create_follow_up(
            lead_id=lead_id,
            description=data.description.strip(),
            notes=(data.notes or "").strip() or None,
            status=data.status.value if data.status else None,
            priority=data.priority.value if data.priority else None,
        )
        await activity_repo.commit()
        await activity_repo.refresh(entry)
        return FollowUpOut.model_validate(entry)

    async def list_follow_ups(
        self,
        session: UserSession,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
        lead_id: Optional[int] = None,
    ) -> List[FollowUpOut]:
        if lead_id is not None:
            await self._ensure_lead(session, lead_id, lead_repo)
        entries = await activity_repo.list_follow_ups(
            lead_id=lead_id, assignee=access_policy.lead_scope(session)
        )
        return [FollowUpOut.model_validate(entry) for entry in entries]

    async def add_call_log(
        self,
        session: UserSession,
        lead_id: int,
        data: CallLogCreate,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> CallLogOut:
        await self._ensure_lead(session, lead_id, lead_repo)
        entry = await activity_repo.create_call_log(
            lead_id=lead_id,
            name=data.name.strip(),
            email=data.email,
            phone=(data.phone or "").strip() or None,
            description=data.description.strip(),
            duration_minutes=data.duration_minutes,
        )
        await activity_repo.commit()
        await activity_repo.refresh(entry)
        return CallLogOut.model_validate(entry)

    async def list_call_logs(
        self,
        session: UserSession,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
        lead_id: Optional[int] = None,
    ) -> List[CallLogOut]:
        if lead_id is not None:
            await self._ensure_lead(session, lead_id, lead_repo)
        entries = await activity_repo.list_call_logs(
            lead_id=lead_id, assignee=access_policy.lead_scope(session)
        )
        return [CallLogOut.model_validate(entry) for entry in entries]

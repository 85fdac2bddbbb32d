import logging
from datetime import tzinfo
from typing import Any, Dict, List

from leadflow.core.clock import Clock
from leadflow.core.exceptions import InvalidLeadDataError, LeadNotFoundError, UserNotFoundError
from leadflow.models.lead import Lead
from leadflow.repositories.activity_repository import ActivityRepository
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.user_repository import UserRepository
from leadflow.schemas.lead import (
    BulkReassignRequest,
    LeadCreate,
    LeadFilters,
    LeadOut,
    LeadUpdate,
)
from leadflow.services import access_policy
from leadflow.services.follow_up_classifier import classify_lead, local_today
from leadflow.services.session_service import UserSession

logger = logging.getLogger(__name__)


def _plain(values: Dict[str, Any]) -> Dict[str, Any]:
    """Unwrap enum members to their stored string values."""
    return {key: getattr(value, "value", value) for key, value in values.items()}


class LeadService:
    """Lead CRUD, filtering and bulk reassignment.

    Every call takes the acting :class:`UserSession`; authorization is
    checked here rather than left to the database.
    """

    def __init__(self, clock: Clock, tz: tzinfo) -> None:
        self._clock = clock
        self._tz = tz

    def to_out(self, lead: Lead) -> LeadOut:
        out = LeadOut.model_validate(lead)
        return out.model_copy(
            update={
                "follow_up_classification": classify_lead(lead, self._clock.now(), self._tz)
            }
        )

    def _check_follow_up_date(self, changes: Dict[str, Any]) -> None:
        follow_up = changes.get("next_follow_up_date")
        if follow_up is None:
            return
        if follow_up < local_today(self._clock.now(), self._tz):
            raise InvalidLeadDataError("Follow-up date cannot be in the past")

    async def _get_accessible(
        self, session: UserSession, lead_id: int, lead_repo: LeadRepository
    ) -> Lead:
        lead = await lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        access_policy.ensure_can_access_lead(session, lead)
        return lead

    async def list_leads(
        self,
        session: UserSession,
        filters: LeadFilters,
        lead_repo: LeadRepository,
    ) -> List[LeadOut]:
        scope = access_policy.lead_scope(session)
        assignee = filters.assignee
        if scope is not None:
            if assignee is not None and assignee.lower() != scope.lower():
                return []
            assignee = scope

        leads = await lead_repo.list(
            assignee=assignee,
            status=filters.status.value if filters.status else None,
            priority=filters.priority.value if filters.priority else None,
            search=filters.search,
        )
        results = [self.to_out(lead) for lead in leads]
        if filters.follow_up is not None:
            results = [
                lead for lead in results if lead.follow_up_classification is filters.follow_up
            ]
        return results

    async def get_lead(
        self, session: UserSession, lead_id: int, lead_repo: LeadRepository
    ) -> LeadOut:
        return self.to_out(await self._get_accessible(session, lead_id, lead_repo))

    async def create_lead(
        self,
        session: UserSession,
        data: LeadCreate,
        lead_repo: LeadRepository,
    ) -> LeadOut:
        values = _plain(data.model_dump())
        if not session.is_admin:
            if values.get("assignee") is None:
                values["assignee"] = session.email
            access_policy.ensure_can_assign(session, values["assignee"])
        self._check_follow_up_date(values)

        lead = await lead_repo.create(**values)
        await lead_repo.commit()
        await lead_repo.refresh(lead)
        logger.info("Lead %s created by user %s", lead.id, session.user_id)
        return self.to_out(lead)

    async def update_lead(
        self,
        session: UserSession,
        lead_id: int,
        data: LeadUpdate,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> LeadOut:
        changes = _plain(data.model_dump(exclude_unset=True))
        for required in ("lead_name", "company_name", "status", "priority"):
            if required in changes and changes[required] is None:
                raise InvalidLeadDataError(f"{required} cannot be empty")

        lead = await self._get_accessible(session, lead_id, lead_repo)
        access_policy.ensure_can_edit_lead(session, lead, changes)
        if (
            "next_follow_up_date" in changes
            and changes["next_follow_up_date"] != lead.next_follow_up_date
        ):
            self._check_follow_up_date(changes)

        await lead_repo.apply_changes(lead, changes)
        await activity_repo.create_follow_up(
            lead_id=lead.id,
            description="Lead information updated",
            status=lead.status,
            priority=lead.priority,
        )
        await lead_repo.commit()
        await lead_repo.refresh(lead)
        logger.info(
            "Lead %s updated by user %s (%s)",
            lead_id,
            session.user_id,
            ", ".join(sorted(changes)) or "no fields",
        )
        return self.to_out(lead)

    async def delete_lead(
        self, session: UserSession, lead_id: int, lead_repo: LeadRepository
    ) -> None:
        access_policy.ensure_admin(session)
        lead = await lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        await lead_repo.delete(lead)
        await lead_repo.commit()
        logger.info("Lead %s deleted by user %s", lead_id, session.user_id)

    async def bulk_reassign(
        self,
        session: UserSession,
        request: BulkReassignRequest,
        lead_repo: LeadRepository,
        user_repo: UserRepository,
    ) -> int:
        access_policy.ensure_admin(session)
        user = await user_repo.get_by_email(request.assignee)
        if user is None or user.status != "active":
            raise UserNotFoundError(f"No active user with email {request.assignee}")

        lead_ids = sorted(set(request.lead_ids))
        missing = set(lead_ids) - set(await lead_repo.existing_ids(lead_ids))
        if missing:
            raise LeadNotFoundError(f"Leads not found: {sorted(missing)}")

        count = await lead_repo.reassign(lead_ids, user.email)
        await lead_repo.commit()
        logger.info("Reassigned %d lead(s) to %s", count, user.email)
        return count


from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from leadflow.api.deps import (
    get_activity_repo,
    get_activity_service,
    get_current_session,
    get_lead_repo,
    get_lead_service,
    get_user_repo,
)
from leadflow.repositories.activity_repository import ActivityRepository
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.user_repository import UserRepository
from leadflow.schemas.activity import CallLogCreate, CallLogOut, FollowUpCreate, FollowUpOut
from leadflow.schemas.common import FollowUpClassification, LeadPriority, LeadStatus
from leadflow.schemas.lead import (
    BulkReassignRequest,
    BulkReassignResponse,
    LeadCreate,
    LeadFilters,
    LeadOut,
    LeadUpdate,
)
from leadflow.services.activity_service import ActivityService
from leadflow.services.lead_service import LeadService
from leadflow.services.session_service import UserSession

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.get("", response_model=List[LeadOut])
async def list_leads(
    status: Optional[LeadStatus] = Query(None),
    priority: Optional[LeadPriority] = Query(None),
    assignee: Optional[str] = Query(None),
    follow_up: Optional[FollowUpClassification] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    session: UserSession = Depends(get_current_session),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> List[LeadOut]:
    filters = LeadFilters(
        status=status,
        priority=priority,
        assignee=assignee,
        follow_up=follow_up,
        search=search,
    )
    return await service.list_leads(session, filters, lead_repo)


@router.post("", response_model=LeadOut, status_code=201)
async def create_lead(
    body: LeadCreate,
    session: UserSession = Depends(get_current_session),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> LeadOut:
    return await service.create_lead(session, body, lead_repo)


# Declared before /{lead_id} routes so the literal paths win
@router.get("/follow-ups", response_model=List[FollowUpOut])
async def list_all_follow_ups(
    session: UserSession = Depends(get_current_session),
    service: ActivityService = Depends(get_activity_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> List[FollowUpOut]:
    return await service.list_follow_ups(session, lead_repo, activity_repo)


@router.get("/call-logs", response_model=List[CallLogOut])
async def list_all_call_logs(
    session: UserSession = Depends(get_current_session),
    service: ActivityService = Depends(get_activity_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> List[CallLogOut]:
    return await service.list_call_logs(session, lead_repo, activity_repo)


@router.post("/bulk-reassign", response_model=BulkReassignResponse)
async def bulk_reassign(
    body: BulkReassignRequest,
    session: UserSession = Depends(get_current_session),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    user_repo: UserRepository = Depends(get_user_repo),
) -> BulkReassignResponse:
    count = await service.bulk_reassign(session, body, lead_repo, user_repo)
    return BulkReassignResponse(reassigned=count, assignee=body.assignee)


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(
    lead_id: int,
    session: UserSession = Depends(get_current_session),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> LeadOut:
    return await service.get_lead(session, lead_id, lead_repo)


@router.patch("/{lead_id}", response_model=LeadOut)
async def update_lead(
    lead_id: int,
    body: LeadUpdate,
    session: UserSession = Depends(get_current_session),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> LeadOut:
    """Update any subset of a lead's fields.

    Changing ``next_follow_up_date`` clears both reminder flags.
    """
    return await service.update_lead(session, lead_id, body, lead_repo, activity_repo)


@router.delete("/{lead_id}", status_code=204)
async def delete_lead(
    lead_id: int,
    session: UserSession = Depends(get_current_session),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> Response:
    await service.delete_lead(session, lead_id, lead_repo)
    return Response(status_code=204)


@router.get("/{lead_id}/follow-ups", response_model=List[FollowUpOut])
async def list_follow_ups(
    lead_id: int,
    session: UserSession = Depends(get_current_session),
    service: ActivityService = Depends(get_activity_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> List[FollowUpOut]:
    return await service.list_follow_ups(session, lead_repo, activity_repo, lead_id=lead_id)


@router.post("/{lead_id}/follow-ups", response_model=FollowUpOut, status_code=201)
async def add_follow_up(
    lead_id: int,
    body: FollowUpCreate,
    session: UserSession = Depends(get_current_session),
    service: ActivityService = Depends(get_activity_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> FollowUpOut:
    return await service.add_follow_up(session, lead_id, body, lead_repo, activity_repo)


@router.get("/{lead_id}/call-logs", response_model=List[CallLogOut])
async def list_call_logs(
    lead_id: int,
    session: UserSession = Depends(get_current_session),
    service: ActivityService = Depends(get_activity_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> List[CallLogOut]:
    return await service.list_call_logs(session, lead_repo, activity_repo, lead_id=lead_id)


@router.post("/{lead_id}/call-logs", response_model=CallLogOut, status_code=201)
async def add_call_log(
    lead_id: int,
    body: CallLogCreate,
    session: UserSession = Depends(get_current_session),
    service: ActivityService = Depends(get_activity_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> CallLogOut:
    return await service.add_call_log(session, lead_id, body, lead_repo, activity_repo)

from fastapi import APIRouter, Depends

from leadflow.api.deps import get_current_session, get_dashboard_service, get_lead_repo
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.schemas.dashboard import DashboardOut
from leadflow.services.dashboard_service import DashboardService
from leadflow.services.session_service import UserSession

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardOut)
async def get_dashboard(
    session: UserSession = Depends(get_current_session),
    service: DashboardService = Depends(get_dashboard_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> DashboardOut:
    return await service.get_dashboard(session, lead_repo)

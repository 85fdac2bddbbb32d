from fastapi import APIRouter, Depends, Request

from leadflow.api.deps import get_current_session, get_session_manager, get_user_repo
from leadflow.core.rate_limit import limiter
from leadflow.repositories.user_repository import UserRepository
from leadflow.schemas.auth import LoginRequest, SessionOut
from leadflow.schemas.common import SuccessResponse
from leadflow.services.session_service import SessionManager, UserSession

router = APIRouter(prefix="/auth", tags=["Auth"])


def _session_out(session: UserSession) -> SessionOut:
    return SessionOut(
        session_token=session.token,
        user_id=session.user_id,
        email=session.email,
        name=session.name,
        role=session.role,
        expires_at=session.expires_at,
    )


@router.post("/login", response_model=SessionOut, status_code=201)
@limiter.limit("10/minute")
async def login(
    request: Request,
    body: LoginRequest,
    manager: SessionManager = Depends(get_session_manager),
    user_repo: UserRepository = Depends(get_user_repo),
) -> SessionOut:
    """Open a session from an identity-provider access token.

    Rate-limited to 10 requests/minute per IP.
    """
    session = await manager.login(body.access_token, user_repo)
    return _session_out(session)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    session: UserSession = Depends(get_current_session),
    manager: SessionManager = Depends(get_session_manager),
) -> SuccessResponse:
    await manager.logout(session)
    return SuccessResponse()


@router.get("/me", response_model=SessionOut)
async def me(session: UserSession = Depends(get_current_session)) -> SessionOut:
    return _session_out(session)

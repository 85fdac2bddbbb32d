from typing import List

from fastapi import APIRouter, Depends

from leadflow.api.deps import get_current_session, get_user_repo, get_user_service
from leadflow.repositories.user_repository import UserRepository
from leadflow.schemas.user import ProfileUpdate, UserAdminUpdate, UserOut
from leadflow.services.session_service import UserSession
from leadflow.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserOut])
async def list_users(
    session: UserSession = Depends(get_current_session),
    service: UserService = Depends(get_user_service),
    user_repo: UserRepository = Depends(get_user_repo),
) -> List[UserOut]:
    return await service.list_users(session, user_repo)


@router.get("/me", response_model=UserOut)
async def get_me(
    session: UserSession = Depends(get_current_session),
    service: UserService = Depends(get_user_service),
    user_repo: UserRepository = Depends(get_user_repo),
) -> UserOut:
    return await service.get_me(session, user_repo)


@router.patch("/me", response_model=UserOut)
async def update_me(
    body: ProfileUpdate,
    session: UserSession = Depends(get_current_session),
    service: UserService = Depends(get_user_service),
    user_repo: UserRepository = Depends(get_user_repo),
) -> UserOut:
    return await service.update_profile(session, body, user_repo)


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    body: UserAdminUpdate,
    session: UserSession = Depends(get_current_session),
    service: UserService = Depends(get_user_service),
    user_repo: UserRepository = Depends(get_user_repo),
) -> UserOut:
    return await service.admin_update(session, user_id, body, user_repo)

import logging
from typing import List

from leadflow.core.exceptions import PermissionDeniedError, UserNotFoundError
from leadflow.models.user import User
from leadflow.repositories.user_repository import UserRepository
from leadflow.schemas.user import ProfileUpdate, UserAdminUpdate, UserOut
from leadflow.services import access_policy
from leadflow.services.session_service import UserSession

logger = logging.getLogger(__name__)


class UserService:
    """Account listing and administration."""

    async def _get(self, user_id: int, user_repo: UserRepository) -> User:
        user = await user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def list_users(
        self, session: UserSession, user_repo: UserRepository
    ) -> List[UserOut]:
        access_policy.ensure_admin(session)
        return [UserOut.model_validate(user) for user in await user_repo.list()]

    async def get_me(self, session: UserSession, user_repo: UserRepository) -> UserOut:
        return UserOut.model_validate(await self._get(session.user_id, user_repo))

    async def update_profile(
        self, session: UserSession, data: ProfileUpdate, user_repo: UserRepository
    ) -> UserOut:
        user = await self._get(session.user_id, user_repo)
        await user_repo.apply_changes(user, data.model_dump(exclude_unset=True, exclude_none=True))
        await user_repo.commit()
        await user_repo.refresh(user)
        return UserOut.model_validate(user)

    async def admin_update(
        self,
        session: UserSession,
        user_id: int,
        data: UserAdminUpdate,
        user_repo: UserRepository,
    ) -> UserOut:
        access_policy.ensure_admin(session)
        changes = {
            key: getattr(value, "value", value)
            for key, value in data.model_dump(exclude_unset=True).items()
        }
        if user_id == session.user_id and (
            changes.get("role") == "Employee" or changes.get("status") == "inactive"
        ):
            raise PermissionDeniedError("You cannot demote or deactivate your own account")

        user = await self._get(user_id, user_repo)
        await user_repo.apply_changes(user, changes)
        await user_repo.commit()
        await user_repo.refresh(user)
        logger.info("User %s updated by admin %s", user_id, session.user_id)
        return UserOut.model_validate(user)

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from leadflow.models.user import User
from leadflow.repositories.base import BaseRepository


class UserRepository(BaseRepository):
    """Encapsulates queries against the ``users`` table."""

    async def get_by_id(self, user_id: int) -> Optional[User]:
        result = await self._db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_auth_id(self, auth_user_id: str) -> Optional[User]:
        result = await self._db.execute(
            select(User).where(User.auth_user_id == auth_user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self._db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def list(self) -> List[User]:
        result = await self._db.execute(select(User).order_by(User.name.asc()))
        return list(result.scalars().all())

    async def active_admin_emails(self) -> List[str]:
        """Return the email of every active admin account."""
        result = await self._db.execute(
            select(User.email).where(User.role == "Admin", User.status == "active")
        )
        return [email.strip() for email in result.scalars().all() if email]

    async def apply_changes(self, user: User, changes: Dict[str, Any]) -> None:
        for field, value in changes.items():
            setattr(user, field, value)

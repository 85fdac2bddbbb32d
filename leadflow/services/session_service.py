import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from leadflow.core.cache import CacheService
from leadflow.core.config import settings
from leadflow.core.exceptions import SessionInvalidError
from leadflow.repositories.user_repository import UserRepository
from leadflow.schemas.common import UserRole

logger = logging.getLogger(__name__)

_SESSION_KEY_PREFIX = "session:"


class UserSession(BaseModel):
    """The acting identity, passed explicitly into every service call."""

    token: str
    user_id: int
    email: str
    name: str
    role: UserRole
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.admin


class SessionManager:
    """Creates, resolves and destroys user sessions.

    Login exchanges an identity-provider access token (JWT) for an
    opaque session token stored in Redis; logout deletes it.
    """

    def __init__(
        self,
        cache: CacheService,
        jwt_secret: Optional[str] = None,
        jwt_algorithm: Optional[str] = None,
        jwt_audience: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        self._cache = cache
        self._secret = jwt_secret if jwt_secret is not None else settings.AUTH_JWT_SECRET
        self._algorithm = jwt_algorithm or settings.AUTH_JWT_ALGORITHM
        self._audience = jwt_audience if jwt_audience is not None else settings.AUTH_JWT_AUDIENCE
        self._ttl = ttl_seconds or settings.SESSION_TTL_SECONDS

    def _decode(self, access_token: str) -> dict:
        if not self._secret:
            logger.error("AUTH_JWT_SECRET is not configured; refusing login")
            raise SessionInvalidError("Login is not available")
        try:
            return jwt.decode(
                access_token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience or None,
                options={"verify_aud": bool(self._audience)},
            )
        except JWTError:
            raise SessionInvalidError("Could not validate credentials")

    async def login(self, access_token: str, user_repo: UserRepository) -> UserSession:
        claims = self._decode(access_token)
        subject = claims.get("sub")
        user = await user_repo.get_by_auth_id(subject) if subject else None
        if user is None and claims.get("email"):
            user = await user_repo.get_by_email(claims["email"])
        if user is None:
            raise SessionInvalidError("No CRM profile for this account")
        if user.status != "active":
            raise SessionInvalidError("This account is inactive")

        session = UserSession(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            email=user.email,
            name=user.name,
            role=UserRole(user.role),
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=self._ttl),
        )
        stored = await self._cache.set_json(
            _SESSION_KEY_PREFIX + session.token,
            session.model_dump(mode="json"),
            ttl=self._ttl,
        )
        if not stored:
            raise SessionInvalidError("Session store unavailable")
        logger.info("Session opened for user %s", user.id)
        return session

    async def resolve(self, token: Optional[str]) -> UserSession:
        if not token:
            raise SessionInvalidError()
        data = await self._cache.get_json(_SESSION_KEY_PREFIX + token)
        if data is None:
            raise SessionInvalidError()
        session = UserSession.model_validate(data)
        if session.expires_at <= datetime.now(timezone.utc):
            await self._cache.delete(_SESSION_KEY_PREFIX + token)
            raise SessionInvalidError()
        return session

    async def logout(self, session: UserSession) -> None:
        await self._cache.delete(_SESSION_KEY_PREFIX + session.token)
        logger.info("Session closed for user %s", session.user_id)

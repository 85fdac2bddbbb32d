import logging
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.cache import CacheService
from leadflow.core.clock import Clock, SystemClock
from leadflow.core.config import settings
from leadflow.core.database import AsyncSessionLocal, get_db
from leadflow.core.exceptions import SessionInvalidError
from leadflow.services.session_service import SessionManager, UserSession

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> Redis:
    """Get an async Redis client instance using connection pooling."""
    try:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
        await client.ping()
        return client
    except Exception:
        logger.warning("Redis unavailable – sessions cannot be resolved")
        return None  # type: ignore[return-value]


async def get_cache_service(
    redis_client: Redis = Depends(get_redis_client),
) -> CacheService:
    """Build a :class:`CacheService` backed by the shared Redis client."""
    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


async def get_session_manager(
    cache: CacheService = Depends(get_cache_service),
) -> SessionManager:
    return SessionManager(cache=cache)


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    manager: SessionManager = Depends(get_session_manager),
) -> UserSession:
    """Resolve ``Authorization: Bearer <session token>`` to a session."""
    token = credentials.credentials if credentials else None
    return await manager.resolve(token)


async def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    manager: SessionManager = Depends(get_session_manager),
) -> Optional[UserSession]:
    if credentials is None:
        return None
    try:
        return await manager.resolve(credentials.credentials)
    except SessionInvalidError:
        return None


async def get_cron_token(
    x_cron_token: Optional[str] = Header(None, alias="X-Cron-Token"),
) -> Optional[str]:
    return x_cron_token


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_lead_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadflow.repositories.lead_repository import LeadRepository

    return LeadRepository(db)


async def get_user_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadflow.repositories.user_repository import UserRepository

    return UserRepository(db)


async def get_activity_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadflow.repositories.activity_repository import ActivityRepository

    return ActivityRepository(db)


async def get_note_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadflow.repositories.sticky_note_repository import StickyNoteRepository

    return StickyNoteRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_clock() -> Clock:
    return SystemClock()


async def get_session_factory():
    """Session factory handed to the reminder pass (one session per pass)."""
    return AsyncSessionLocal


async def get_email_sender():
    from leadflow.services.email_sender import build_email_sender

    return build_email_sender()


async def get_lead_service(clock: Clock = Depends(get_clock)):
    from leadflow.services.follow_up_classifier import get_zone
    from leadflow.services.lead_service import LeadService

    return LeadService(clock=clock, tz=get_zone(settings.REMINDER_TIMEZONE))


async def get_dashboard_service(clock: Clock = Depends(get_clock)):
    from leadflow.services.dashboard_service import DashboardService
    from leadflow.services.follow_up_classifier import get_zone

    return DashboardService(clock=clock, tz=get_zone(settings.REMINDER_TIMEZONE))


async def get_activity_service():
    from leadflow.services.activity_service import ActivityService

    return ActivityService()


async def get_user_service():
    from leadflow.services.user_service import UserService

    return UserService()


async def get_sticky_note_service():
    from leadflow.services.sticky_note_service import StickyNoteService

    return StickyNoteService()

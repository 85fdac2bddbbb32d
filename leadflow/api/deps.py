"""API-layer dependency functions.

Re-exports all dependency factories from ``leadflow.dependencies`` so
that endpoint modules only need to import from ``leadflow.api.deps``.
"""

from leadflow.dependencies import (
    # Sessions
    get_current_session,
    get_optional_session,
    get_session_manager,
    get_cron_token,
    # Repository factories
    get_lead_repo,
    get_user_repo,
    get_activity_repo,
    get_note_repo,
    # Service factories
    get_clock,
    get_session_factory,
    get_email_sender,
    get_lead_service,
    get_dashboard_service,
    get_activity_service,
    get_user_service,
    get_sticky_note_service,
    # Redis
    get_redis_client,
    get_cache_service,
)

__all__ = [
    "get_current_session",
    "get_optional_session",
    "get_session_manager",
    "get_cron_token",
    "get_lead_repo",
    "get_user_repo",
    "get_activity_repo",
    "get_note_repo",
    "get_clock",
    "get_session_factory",
    "get_email_sender",
    "get_lead_service",
    "get_dashboard_service",
    "get_activity_service",
    "get_user_service",
    "get_sticky_note_service",
    "get_redis_client",
    "get_cache_service",
]

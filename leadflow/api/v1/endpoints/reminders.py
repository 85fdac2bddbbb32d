import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from leadflow.api.deps import (
    get_clock,
    get_cron_token,
    get_email_sender,
    get_optional_session,
    get_session_factory,
)
from leadflow.core.clock import Clock
from leadflow.core.config import settings
from leadflow.core.exceptions import PermissionDeniedError, SessionInvalidError
from leadflow.schemas.common import ReminderRunStatus
from leadflow.schemas.reminder import ReminderRunSummary
from leadflow.services.reminder_runner import run_reminder_pass
from leadflow.services.session_service import UserSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reminders", tags=["Reminders"])

_STATUS_CODES = {
    ReminderRunStatus.success: 200,
    ReminderRunStatus.partial_failure: 207,
    ReminderRunStatus.failed: 500,
}


def _authorize(cron_token: Optional[str], session: Optional[UserSession]) -> None:
    expected = settings.REMINDER_CRON_TOKEN
    if cron_token is not None:
        if expected and hmac.compare_digest(cron_token, expected):
            return
        raise PermissionDeniedError("Invalid cron token")
    if session is None:
        raise SessionInvalidError()
    if not session.is_admin:
        raise PermissionDeniedError("Only administrators can run reminders")


@router.post("/run", response_model=ReminderRunSummary)
async def run_reminders(
    cron_token: Optional[str] = Depends(get_cron_token),
    session: Optional[UserSession] = Depends(get_optional_session),
    session_factory=Depends(get_session_factory),
    sender=Depends(get_email_sender),
    clock: Clock = Depends(get_clock),
) -> JSONResponse:
    """Run one reminder pass (cron trigger or admin).

    Responds 200 on success, 207 on partial failure and 500 when the
    candidate query failed.
    """
    _authorize(cron_token, session)
    summary = await run_reminder_pass(session_factory, sender=sender, clock=clock)
    return JSONResponse(
        status_code=_STATUS_CODES[summary.status],
        content=summary.model_dump(mode="json"),
    )

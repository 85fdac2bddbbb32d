import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from leadflow.api.v1.router import router as api_v1_router
from leadflow.core.config import settings as app_settings
from leadflow.core.database import AsyncSessionLocal
from leadflow.core.exceptions import (
    InvalidLeadDataError,
    LeadNotFoundError,
    MutationInFlightError,
    PermissionDeniedError,
    ReminderQueryError,
    SessionInvalidError,
    StickyNoteNotFoundError,
    UserNotFoundError,
)
from leadflow.core.rate_limit import limiter
from leadflow.services.reminder_runner import start_reminder_loop

# Configure logging
logging.basicConfig(level=app_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application-level background tasks."""
    reminder_task = None
    if app_settings.REMINDER_INTERVAL_SECONDS > 0:
        reminder_task = asyncio.create_task(
            start_reminder_loop(AsyncSessionLocal, app_settings.REMINDER_INTERVAL_SECONDS)
        )
        logger.info("Background reminder task scheduled")
    yield
    if reminder_task is not None:
        reminder_task.cancel()
        try:
            await reminder_task
        except asyncio.CancelledError:
            logger.info("Background reminder task stopped")


app = FastAPI(
    title="LeadFlow CRM",
    description="Lead management with follow-up tracking and reminder notifications",
    version="0.1.0",
    lifespan=lifespan,
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware – restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


def _error(status_code: int, detail: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "type": error_type},
    )


@app.exception_handler(LeadNotFoundError)
async def lead_not_found_handler(request: Request, exc: LeadNotFoundError):
    logger.warning("Lead not found: %s", exc.detail)
    return _error(404, exc.detail, "lead_not_found")


@app.exception_handler(UserNotFoundError)
async def user_not_found_handler(request: Request, exc: UserNotFoundError):
    logger.warning("User not found: %s", exc.detail)
    return _error(404, exc.detail, "user_not_found")


@app.exception_handler(StickyNoteNotFoundError)
async def sticky_note_not_found_handler(request: Request, exc: StickyNoteNotFoundError):
    logger.warning("Sticky note not found: %s", exc.detail)
    return _error(404, exc.detail, "sticky_note_not_found")


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    logger.warning("Permission denied on %s: %s", request.url.path, exc.detail)
    return _error(403, exc.detail, "permission_denied")


@app.exception_handler(SessionInvalidError)
async def session_invalid_handler(request: Request, exc: SessionInvalidError):
    logger.info("Rejected session on %s: %s", request.url.path, exc.detail)
    response = _error(401, exc.detail, "session_invalid")
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(InvalidLeadDataError)
async def invalid_lead_data_handler(request: Request, exc: InvalidLeadDataError):
    logger.warning("Invalid lead data: %s", exc.detail)
    return _error(422, exc.detail, "invalid_lead_data")


@app.exception_handler(MutationInFlightError)
async def mutation_in_flight_handler(request: Request, exc: MutationInFlightError):
    return _error(409, exc.detail, "mutation_in_flight")


@app.exception_handler(ReminderQueryError)
async def reminder_query_handler(request: Request, exc: ReminderQueryError):
    logger.error("Reminder query failed: %s", exc.detail)
    return _error(500, "Reminder candidate query failed", "reminder_query_failed")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )

from fastapi import APIRouter

from leadflow.api.v1.endpoints import (
    auth,
    dashboard,
    health,
    leads,
    reminders,
    sticky_notes,
    users,
)

router = APIRouter(prefix="/api/v1")

router.include_router(health.router)
router.include_router(auth.router)
router.include_router(leads.router)
router.include_router(users.router)
router.include_router(sticky_notes.router)
router.include_router(dashboard.router)
router.include_router(reminders.router)

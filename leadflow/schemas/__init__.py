from leadflow.schemas.common import (
    FollowUpClassification,
    LeadPriority,
    LeadStatus,
    ReminderKind,
    ReminderRunStatus,
    UserRole,
    UserStatus,
)
from leadflow.schemas.lead import LeadCreate, LeadOut, LeadUpdate
from leadflow.schemas.reminder import ReminderKindCounts, ReminderRunSummary

__all__ = [
    "FollowUpClassification",
    "LeadPriority",
    "LeadStatus",
    "ReminderKind",
    "ReminderRunStatus",
    "UserRole",
    "UserStatus",
    "LeadCreate",
    "LeadOut",
    "LeadUpdate",
    "ReminderKindCounts",
    "ReminderRunSummary",
]

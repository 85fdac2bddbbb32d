from enum import Enum
from pydantic import BaseModel


class LeadStatus(str, Enum):
    new = "New"
    contacted = "Contacted"
    qualified = "Qualified"
    proposal = "Proposal"
    negotiation = "Negotiation"
    won = "Won"
    lost = "Lost"


class LeadPriority(str, Enum):
    low = "Low"
    medium = "Medium"
    high = "High"
    urgent = "Urgent"


class UserRole(str, Enum):
    admin = "Admin"
    employee = "Employee"


class UserStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class FollowUpClassification(str, Enum):
    none = "none"
    overdue = "overdue"
    due_today = "due-today"
    upcoming = "upcoming"


class ReminderKind(str, Enum):
    upcoming = "upcoming"
    overdue = "overdue"
    sticky_note = "sticky_note"


class ReminderRunStatus(str, Enum):
    success = "success"
    partial_failure = "partial_failure"
    failed = "failed"


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True

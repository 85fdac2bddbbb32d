"""Lead-specific Pydantic schemas (create, update, response)."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from leadflow.schemas.common import (
    FollowUpClassification,
    LeadPriority,
    LeadStatus,
    SuccessResponse,
)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LeadCreate(BaseModel):
    """Data submitted when a user adds a lead."""

    lead_name: str = Field(..., min_length=1, max_length=200)
    company_name: str = Field(..., min_length=1, max_length=200)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    assignee: Optional[str] = None
    priority: LeadPriority = LeadPriority.medium
    status: LeadStatus = LeadStatus.new
    lead_source: Optional[str] = None
    service: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    next_follow_up_date: Optional[date] = None
    follow_up_time: Optional[str] = Field(None, max_length=20)


class LeadUpdate(BaseModel):
    """Partial update; only the fields present in the request are written."""

    lead_name: Optional[str] = Field(None, min_length=1, max_length=200)
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    assignee: Optional[str] = None
    priority: Optional[LeadPriority] = None
    status: Optional[LeadStatus] = None
    lead_source: Optional[str] = None
    service: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    next_follow_up_date: Optional[date] = None
    follow_up_time: Optional[str] = Field(None, max_length=20)


class BulkReassignRequest(BaseModel):
    """Request body for POST /api/v1/leads/bulk-reassign."""

    lead_ids: List[int] = Field(..., min_length=1)
    assignee: EmailStr


class LeadFilters(BaseModel):
    """Query filters for the lead list."""

    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    assignee: Optional[str] = None
    follow_up: Optional[FollowUpClassification] = None
    search: Optional[str] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeadOut(BaseModel):
    """A lead as returned by the API (and held by client collections)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_name: str
    company_name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    assignee: Optional[str] = None
    priority: LeadPriority
    status: LeadStatus
    lead_source: Optional[str] = None
    service: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    next_follow_up_date: Optional[date] = None
    follow_up_time: Optional[str] = None
    overdue_reminder_sent: bool = False
    upcoming_reminder_sent: bool = False
    follow_up_classification: FollowUpClassification = FollowUpClassification.none
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BulkReassignResponse(SuccessResponse):
    reassigned: int
    assignee: str

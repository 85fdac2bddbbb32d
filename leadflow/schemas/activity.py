"""Follow-up history and call-log schemas (append-only lead activity)."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from leadflow.schemas.common import LeadPriority, LeadStatus


class FollowUpCreate(BaseModel):
    description: str = Field(..., min_length=1)
    notes: Optional[str] = None
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None


class FollowUpOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    description: str
    notes: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    created_at: Optional[datetime] = None


class CallLogCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    description: str = Field(..., min_length=1)
    duration_minutes: Optional[int] = Field(None, ge=0)


class CallLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    description: str
    duration_minutes: Optional[int] = None
    created_at: Optional[datetime] = None

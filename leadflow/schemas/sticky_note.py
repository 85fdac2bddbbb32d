from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StickyNoteCreate(BaseModel):
    content: str = Field(..., min_length=1)
    reminder_at: datetime
    lead_id: Optional[int] = None
    color: str = Field("yellow", max_length=20)


class StickyNoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    reminder_at: datetime
    is_reminder_sent: bool
    lead_id: Optional[int] = None
    user_id: int
    email: Optional[str] = None
    color: str
    created_at: Optional[datetime] = None

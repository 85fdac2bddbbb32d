from datetime import datetime

from pydantic import BaseModel, Field

from leadflow.schemas.common import UserRole


class LoginRequest(BaseModel):
    """Exchange an identity-provider access token for an app session."""

    access_token: str = Field(..., min_length=1)


class SessionOut(BaseModel):
    session_token: str
    user_id: int
    email: str
    name: str
    role: UserRole
    expires_at: datetime

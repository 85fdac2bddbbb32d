from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from leadflow.schemas.common import UserRole, UserStatus


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    department: Optional[str] = None
    status: UserStatus
    join_date: Optional[date] = None


class UserAdminUpdate(BaseModel):
    """Fields an admin may change on any account."""

    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    department: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)

from sqlalchemy import Column, Integer, String, Date, DateTime, CheckConstraint
from sqlalchemy.sql import func

from leadflow.models.base import Base


class User(Base):
    """CRM account: an admin or an employee who can be assigned leads.

    ``auth_user_id`` links the profile to the subject of the identity
    provider's token.  Leads reference their assignee by ``email``.
    """

    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    auth_user_id = Column(String(64), unique=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(30))
    role = Column(String(20), nullable=False, server_default="Employee")
    department = Column(String(100))
    status = Column(String(20), nullable=False, server_default="active")
    join_date = Column(Date, server_default=func.current_date())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("role IN ('Admin', 'Employee')", name="ck_user_role"),
        CheckConstraint("status IN ('active', 'inactive')", name="ck_user_status"),
    )

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadflow.core.constants import PRIORITY_CHECK_CLAUSE, STATUS_CHECK_CLAUSE
from leadflow.models.base import Base


class Lead(Base):
    """Sales opportunity tracked through the pipeline.

    ``assignee`` holds the responsible account's identifier (normally the
    user's email) or ``NULL`` when unassigned.  The two reminder flags
    guard the scheduled notifications: each moves from false to true
    once the matching email has been delivered, and both are cleared by
    the ``before_flush`` listener whenever ``next_follow_up_date`` changes.
    """

    __tablename__ = "leads"
    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_name = Column(String(200), nullable=False)
    company_name = Column(String(200), nullable=False)
    contact_person = Column(String(200))
    email = Column(String(255))
    phone = Column(String(30))
    assignee = Column(String(255))
    priority = Column(String(20), nullable=False, server_default="Medium")
    status = Column(String(20), nullable=False, server_default="New")
    lead_source = Column(String(100))
    service = Column(String(100))
    location = Column(String(200))
    notes = Column(Text)
    next_follow_up_date = Column(Date)
    follow_up_time = Column(String(20))
    overdue_reminder_sent = Column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    upcoming_reminder_sent = Column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    follow_ups = relationship(
        "FollowUpHistory", back_populates="lead", cascade="all, delete-orphan"
    )
    call_logs = relationship(
        "CallLog", back_populates="lead", cascade="all, delete-orphan"
    )
    sticky_notes = relationship("StickyNote", back_populates="lead")

    __table_args__ = (
        Index("idx_leads_assignee", "assignee"),
        # Reminder scans filter on the follow-up date plus one flag
        Index(
            "idx_leads_follow_up_overdue",
            "next_follow_up_date",
            postgresql_where=text("overdue_reminder_sent = false"),
        ),
        Index(
            "idx_leads_follow_up_upcoming",
            "next_follow_up_date",
            postgresql_where=text("upcoming_reminder_sent = false"),
        ),
        CheckConstraint(STATUS_CHECK_CLAUSE, name="ck_lead_status"),
        CheckConstraint(PRIORITY_CHECK_CLAUSE, name="ck_lead_priority"),
    )

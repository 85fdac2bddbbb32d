from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadflow.models.base import Base


class StickyNote(Base):
    """Personal, time-triggered reminder, optionally linked to a lead.

    ``is_reminder_sent`` only ever moves from false to true.
    """

    __tablename__ = "sticky_notes"
    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    reminder_at = Column(DateTime(timezone=True), nullable=False)
    is_reminder_sent = Column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"))
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    email = Column(String(255))
    color = Column(String(20), nullable=False, server_default="yellow")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lead = relationship("Lead", back_populates="sticky_notes")
    owner = relationship("User")

    __table_args__ = (
        Index(
            "idx_sticky_notes_pending_reminder",
            "reminder_at",
            postgresql_where=text("is_reminder_sent = false"),
        ),
    )

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadflow.models.base import Base


class FollowUpHistory(Base):
    """Append-only audit entry describing a follow-up on a lead."""

    __tablename__ = "follow_up_history"
    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(
        Integer, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(Text, nullable=False)
    notes = Column(Text)
    status = Column(String(20))
    priority = Column(String(20))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lead = relationship("Lead", back_populates="follow_ups")

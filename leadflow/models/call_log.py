from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadflow.models.base import Base


class CallLog(Base):
    """Append-only record of a call made to a lead's contact."""

    __tablename__ = "call_logs"
    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(
        Integer, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    email = Column(String(255))
    phone = Column(String(30))
    description = Column(Text, nullable=False)
    duration_minutes = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lead = relationship("Lead", back_populates="call_logs")

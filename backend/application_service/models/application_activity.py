from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from application_service.core.base import Base


class ApplicationActivity(Base):
    __tablename__ = "application_activities"

    id = Column(Integer, primary_key=True, index=True)

    application_id = Column(
        String(24),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # User who caused the event (applicant on submit, recruiter/admin on status change).
    actor_id = Column(String(24), nullable=False, index=True)

    # application_submitted | status_changed
    type = Column(String(50), nullable=False, index=True)

    message = Column(String(255), nullable=True)
    data = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="activities")

from enum import Enum

from sqlalchemy import Column, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from application_service.core.base import Base
from application_service.core.ids import new_object_id


class ApplicationStatus(str, Enum):
    APPLIED = "Applied"
    REVIEWED = "Reviewed"
    INTERVIEW_SCHEDULED = "Interview Scheduled"
    INTERVIEWED = "Interviewed"
    OFFER_EXTENDED = "Offer Extended"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]


class Application(Base):
    __tablename__ = "applications"

    id = Column(String(24), primary_key=True, default=new_object_id)

    # Owned by the jobs service; never joined locally.
    job_id = Column(String(24), nullable=False, index=True)
    # Copy of the job at submission time: {title, company_name, location, type}. Write-once.
    job_snapshot = Column(JSON, nullable=False)

    # Owned by the auth service; always taken from the verified token.
    applicant_id = Column(String(24), nullable=False, index=True)
    # Copy of the profile at submission time. Write-once.
    applicant_snapshot = Column(JSON, nullable=False)

    # Derived from the job lookup, never from the request.
    recruiter_id = Column(String(24), nullable=False, index=True)

    status = Column(String(32), nullable=False, default=ApplicationStatus.APPLIED.value)

    resume_reference = Column(String(512), nullable=False)
    resume_original_name = Column(String(512), nullable=False)
    cover_letter = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    activities = relationship(
        "ApplicationActivity",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="desc(ApplicationActivity.created_at)",
    )

    __table_args__ = (
        # One application per applicant per job. The store is the authoritative guard,
        # the duplicate check in the submission flow only avoids a wasted round-trip.
        UniqueConstraint("job_id", "applicant_id", name="uq_applications_job_id_applicant_id"),
        Index("ix_applications_applicant_id_created_at", "applicant_id", "created_at"),
        Index("ix_applications_job_id_status", "job_id", "status"),
    )

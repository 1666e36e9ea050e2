from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from application_service.core.base import Base


class OrphanedResume(Base):
    """
    A staged resume whose compensating delete failed.

    Rows are written by the submission flow and retried by the orphan sweep;
    `resolved_at` is set once the file is gone.
    """

    __tablename__ = "orphaned_resumes"

    id = Column(Integer, primary_key=True, index=True)

    resume_reference = Column(String(512), nullable=False, index=True)
    reason = Column(String(255), nullable=True)
    attempts = Column(Integer, nullable=False, server_default="1", default=1)
    last_error = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True, index=True)

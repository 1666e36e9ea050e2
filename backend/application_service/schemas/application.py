from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class JobSnapshotOut(BaseModel):
    title: Optional[str] = None
    company_name: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None


class ApplicantSnapshotOut(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    headline: str = ""
    skills: List[str] = []


class ApplicationOut(BaseModel):
    id: str
    job_id: str
    job_snapshot: JobSnapshotOut
    applicant_id: str
    applicant_snapshot: ApplicantSnapshotOut
    recruiter_id: str
    status: str
    resume_original_name: str
    cover_letter: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplicationPageOut(BaseModel):
    applications: List[ApplicationOut]
    total: int
    total_pages: int
    current_page: int


class ApplicationStatusUpdate(BaseModel):
    # Validated against ApplicationStatus in the service so unknown values are a 400, not a 422.
    status: Optional[str] = None


class ApplicationActivityOut(BaseModel):
    id: int
    application_id: str
    actor_id: str
    type: str
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

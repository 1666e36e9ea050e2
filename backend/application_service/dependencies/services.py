from __future__ import annotations

import httpx
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from application_service.core.config import settings
from application_service.core.database import get_db
from application_service.services.jobs_client import JobLookupClient
from application_service.services.profile_client import ProfileLookupClient
from application_service.services.resume_storage import ResumeStorage
from application_service.services.submission import ApplicationSubmissionService


def get_http_client(request: Request) -> httpx.Client:
    # Created and closed by the app lifespan in main.py.
    return request.app.state.http_client


def get_resume_storage() -> ResumeStorage:
    return ResumeStorage(settings.UPLOADS_DIR, settings.MAX_UPLOAD_BYTES)


def get_job_lookup(http_client: httpx.Client = Depends(get_http_client)) -> JobLookupClient:
    return JobLookupClient(
        http_client,
        settings.JOBS_SERVICE_URL,
        timeout=settings.SERVICE_TIMEOUT_SECONDS,
    )


def get_profile_lookup(http_client: httpx.Client = Depends(get_http_client)) -> ProfileLookupClient:
    return ProfileLookupClient(
        http_client,
        settings.PROFILE_SERVICE_URL,
        timeout=settings.SERVICE_TIMEOUT_SECONDS,
    )


def get_submission_service(
    db: Session = Depends(get_db),
    storage: ResumeStorage = Depends(get_resume_storage),
    jobs: JobLookupClient = Depends(get_job_lookup),
    profiles: ProfileLookupClient = Depends(get_profile_lookup),
) -> ApplicationSubmissionService:
    return ApplicationSubmissionService(db, storage, jobs, profiles)

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from application_service.auth.identity import Identity
from application_service.core.config import settings
from application_service.core.database import get_db
from application_service.core.exceptions import InvalidInput
from application_service.core.rate_limit import limiter
from application_service.dependencies.auth import get_current_user
from application_service.dependencies.services import get_resume_storage, get_submission_service
from application_service.schemas.application import (
    ApplicationActivityOut,
    ApplicationOut,
    ApplicationPageOut,
    ApplicationStatusUpdate,
)
from application_service.services import applications as application_store
from application_service.services.resume_storage import ResumeStorage
from application_service.services.submission import ApplicationSubmissionService, SubmissionRequest

router = APIRouter(tags=["applications"], dependencies=[Depends(get_current_user)])


def _maybe_limit(rule: str):
    if not settings.ENABLE_RATE_LIMITING:
        def passthrough(fn):
            return fn
        return passthrough
    return limiter.limit(rule)


@router.post("/apply", response_model=ApplicationOut, status_code=201)
@_maybe_limit("10/minute")
def submit_application(
    request: Request,
    resume: UploadFile | None = File(None),
    job_id: str | None = Form(None, alias="jobId"),
    cover_letter: str | None = Form(None, alias="coverLetter"),
    user: Identity = Depends(get_current_user),
    storage: ResumeStorage = Depends(get_resume_storage),
    service: ApplicationSubmissionService = Depends(get_submission_service),
):
    if resume is None or not resume.filename:
        raise InvalidInput("Resume file is required.")

    # Stage first; from here on every failure must remove the file again.
    staged = storage.stage(resume.file, resume.filename, resume.content_type)

    return service.submit(
        SubmissionRequest(
            applicant_id=user.user_id,
            bearer_token=user.token,
            job_id=job_id,
            cover_letter=cover_letter,
            resume=staged,
        )
    )


@router.get("/applications/me", response_model=list[ApplicationOut])
def list_my_applications(
    db: Session = Depends(get_db),
    user: Identity = Depends(get_current_user),
):
    return application_store.list_for_applicant(db, user.user_id)


@router.get("/applications/job/{job_id}", response_model=ApplicationPageOut)
def list_job_applications(
    job_id: str,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    db: Session = Depends(get_db),
    user: Identity = Depends(get_current_user),
):
    return application_store.list_for_job(db, job_id, user, page=page, limit=limit, status=status)


@router.get("/applications", response_model=ApplicationPageOut)
def list_all_applications(
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
    user: Identity = Depends(get_current_user),
):
    return application_store.list_all(db, user, page=page, limit=limit)


@router.patch("/applications/{application_id}/status", response_model=ApplicationOut)
def update_application_status(
    application_id: str,
    payload: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    user: Identity = Depends(get_current_user),
):
    return application_store.update_status(db, application_id, payload.status, user)


@router.get("/applications/{application_id}/resume")
def download_resume(
    application_id: str,
    db: Session = Depends(get_db),
    user: Identity = Depends(get_current_user),
    storage: ResumeStorage = Depends(get_resume_storage),
):
    path, original_name = application_store.fetch_resume(db, storage, application_id, user)
    return FileResponse(
        path,
        media_type="application/octet-stream",
        filename=original_name,
        content_disposition_type="attachment",
    )


@router.get("/applications/{application_id}/activity", response_model=list[ApplicationActivityOut])
def list_application_activity(
    application_id: str,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: Identity = Depends(get_current_user),
):
    return application_store.list_activity(db, application_id, user, limit=limit)

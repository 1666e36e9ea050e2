"""
Application submission.

Submitting an application touches four collaborators that cannot share a
transaction: the staged resume on disk, the jobs service, the profile service
and the applications table. The flow below runs them in order and treats the
staged resume as the one thing to undo:

1. validate the job id
2. reject a second application for the same (job, applicant) pair
3. look up the job; it must exist, be open and name its recruiter
4. fetch the applicant's profile with the caller's own bearer token
5. build the application with both snapshots, status ``Applied``
6. insert it; the unique (job, applicant) constraint settles races
7. hand the staged resume over to the stored application

Any failure after the upload was staged deletes the resume before the error
reaches the caller. A failed delete is logged and queued for the orphan
sweep, never raised, so the caller always sees the original error.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from application_service.core.exceptions import (
    ApplicationServiceError,
    Conflict,
    DependencyDataInvalid,
    DependencyUnavailable,
    InvalidInput,
    InvalidState,
    NotFound,
    StorageError,
)
from application_service.core.ids import is_valid_object_id, new_object_id
from application_service.models.application import Application, ApplicationStatus
from application_service.services.applications import (
    ApplicationStoreError,
    ApplicationStoreUnavailable,
    DuplicateApplicationError,
    find_application,
    insert_application,
)
from application_service.services.jobs_client import (
    JobDetails,
    JobLookupClient,
    JobLookupError,
    JobNotFoundError,
)
from application_service.services.orphaned_resumes import record_orphaned_resume
from application_service.services.profile_client import (
    ProfileLookupClient,
    ProfileLookupError,
    ProfileSnapshot,
)
from application_service.services.resume_storage import ResumeStorage, StagedResume

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "You have already applied for this job."
STORE_UNAVAILABLE_MESSAGE = "Could not reach the application store."


@dataclass(frozen=True)
class SubmissionRequest:
    applicant_id: str
    # Raw bearer token of the caller, forwarded as-is to the profile service.
    bearer_token: str
    job_id: str | None
    cover_letter: str | None
    resume: StagedResume


class ApplicationSubmissionService:
    def __init__(
        self,
        db: Session,
        storage: ResumeStorage,
        jobs: JobLookupClient,
        profiles: ProfileLookupClient,
    ) -> None:
        self.db = db
        self.storage = storage
        self.jobs = jobs
        self.profiles = profiles

    def submit(self, request: SubmissionRequest) -> Application:
        try:
            application = self._submit(request)
        except ApplicationServiceError as exc:
            logger.info(
                "Application by %s for job %s rejected: %s (%s)",
                request.applicant_id,
                request.job_id,
                exc.code,
                exc.message,
            )
            self._compensate(request.resume, reason=exc.code)
            raise
        except Exception:
            logger.exception(
                "Unexpected error submitting application by %s for job %s",
                request.applicant_id,
                request.job_id,
            )
            self._compensate(request.resume, reason="INTERNAL_ERROR")
            raise

        # Committed: the resume now belongs to the application and must not be touched.
        try:
            self.db.refresh(application)
        except SQLAlchemyError:
            logger.warning("Could not refresh application %s after commit", application.id)
        logger.info(
            "Application %s submitted by %s for job %s (recruiter %s)",
            application.id,
            application.applicant_id,
            application.job_id,
            application.recruiter_id,
        )
        return application

    def _submit(self, request: SubmissionRequest) -> Application:
        job_id = (request.job_id or "").strip()
        if not is_valid_object_id(job_id):
            raise InvalidInput("Valid Job ID is required.")

        try:
            existing = find_application(self.db, job_id, request.applicant_id)
        except (OperationalError, PoolTimeoutError) as exc:
            logger.warning("Application store unavailable during duplicate check: %s", exc)
            raise DependencyUnavailable(STORE_UNAVAILABLE_MESSAGE) from exc
        except SQLAlchemyError as exc:
            raise StorageError("Could not check for an existing application.") from exc
        if existing:
            raise Conflict(DUPLICATE_MESSAGE)

        job = self._lookup_job(job_id)
        profile = self._lookup_profile(request)

        cover_letter = (request.cover_letter or "").strip() or None
        application = Application(
            id=new_object_id(),
            job_id=job_id,
            job_snapshot=job.snapshot(),
            applicant_id=request.applicant_id,
            applicant_snapshot=profile.as_dict(),
            recruiter_id=job.recruiter_id,
            status=ApplicationStatus.APPLIED.value,
            resume_reference=request.resume.reference,
            resume_original_name=request.resume.original_name,
            cover_letter=cover_letter,
        )

        try:
            return insert_application(self.db, application)
        except DuplicateApplicationError as exc:
            # Lost the race against a concurrent submission for the same pair.
            raise Conflict(DUPLICATE_MESSAGE) from exc
        except ApplicationStoreUnavailable as exc:
            logger.warning("Application store unavailable storing application for job %s: %s", job_id, exc)
            raise DependencyUnavailable(STORE_UNAVAILABLE_MESSAGE) from exc
        except ApplicationStoreError as exc:
            logger.error("Failed to store application for job %s: %s", job_id, exc)
            raise StorageError() from exc

    def _lookup_job(self, job_id: str) -> JobDetails:
        try:
            job = self.jobs.get_job(job_id)
        except JobNotFoundError as exc:
            raise NotFound("Job not found.") from exc
        except JobLookupError as exc:
            logger.warning("Failed to verify job %s with jobs service: %s", job_id, exc)
            raise DependencyUnavailable("Could not connect to Jobs Service or verify job details.") from exc

        if not job.is_open:
            raise InvalidState("Job is no longer open.")
        if not job.recruiter_id:
            logger.error("Job %s has no recruiter (postedBy/recruiterId missing)", job_id)
            raise DependencyDataInvalid("Job missing recruiter information.")
        return job

    def _lookup_profile(self, request: SubmissionRequest) -> ProfileSnapshot:
        try:
            return self.profiles.get_my_profile(request.bearer_token)
        except ProfileLookupError as exc:
            logger.warning("Failed to fetch profile snapshot for applicant %s: %s", request.applicant_id, exc)
            raise DependencyUnavailable(
                "Could not retrieve applicant profile data from Profile Service."
            ) from exc

    def _compensate(self, staged: StagedResume, *, reason: str) -> None:
        try:
            self.storage.delete(staged.reference)
        except Exception as exc:
            logger.exception("Failed to delete staged resume %s", staged.reference)
            record_orphaned_resume(self.db, staged.reference, reason=reason, error=str(exc))
            return
        logger.debug("Deleted staged resume %s (%s)", staged.reference, reason)

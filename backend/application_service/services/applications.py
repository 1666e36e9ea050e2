from __future__ import annotations

import logging
import math
from pathlib import Path

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Query, Session

from application_service.auth.identity import Identity
from application_service.core.exceptions import Forbidden, InvalidInput, NotFound
from application_service.core.ids import is_valid_object_id
from application_service.models.application import Application, ApplicationStatus
from application_service.models.application_activity import ApplicationActivity
from application_service.services.activity import log_application_activity
from application_service.services.resume_storage import ResumeStorage

logger = logging.getLogger(__name__)

UNIQUE_CONSTRAINT_NAME = "uq_applications_job_id_applicant_id"
MAX_PAGE_SIZE = 100


class DuplicateApplicationError(Exception):
    """The (job, applicant) uniqueness constraint rejected the write."""


class ApplicationStoreError(Exception):
    """Any other failure while persisting an application."""


class ApplicationStoreUnavailable(ApplicationStoreError):
    """The store could not be reached or did not answer in time."""


def _is_duplicate_application(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    text = str(orig if orig is not None else exc).lower()
    if UNIQUE_CONSTRAINT_NAME in text:
        return True
    # SQLite reports the columns instead of the constraint name.
    return "unique" in text and "applications.job_id" in text and "applications.applicant_id" in text


def find_application(db: Session, job_id: str, applicant_id: str) -> Application | None:
    return (
        db.query(Application)
        .filter(Application.job_id == job_id, Application.applicant_id == applicant_id)
        .first()
    )


def insert_application(db: Session, application: Application) -> Application:
    """
    Persist a new application together with its `application_submitted` activity.

    Raises:
        DuplicateApplicationError: another submission for the same pair won the race.
        ApplicationStoreUnavailable: connection failure, pool checkout or statement timeout.
        ApplicationStoreError: anything else went wrong; the session is rolled back.
    """
    try:
        db.add(application)
        db.flush()
        log_application_activity(
            db,
            application_id=application.id,
            actor_id=application.applicant_id,
            type="application_submitted",
            message="Application submitted",
            data={"job_id": application.job_id, "recruiter_id": application.recruiter_id},
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if _is_duplicate_application(exc):
            raise DuplicateApplicationError(str(exc.orig)) from exc
        raise ApplicationStoreError(str(exc.orig)) from exc
    except (OperationalError, PoolTimeoutError) as exc:
        db.rollback()
        raise ApplicationStoreUnavailable(str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise ApplicationStoreError(str(exc)) from exc
    return application


def get_application(db: Session, application_id: str) -> Application:
    if not is_valid_object_id(application_id):
        raise InvalidInput("Invalid Application ID format.")
    application = db.query(Application).filter(Application.id == application_id).first()
    if not application:
        raise NotFound("Application not found.")
    return application


def update_status(db: Session, application_id: str, new_status: str | None, actor: Identity) -> Application:
    """
    Any status may follow any other; only membership in ApplicationStatus is checked.
    """
    status = (new_status or "").strip()
    if status not in ApplicationStatus.values():
        raise InvalidInput("Invalid application status.")

    application = get_application(db, application_id)
    if not actor.can_manage(application.recruiter_id):
        raise Forbidden("You do not have permission to update this application status.")

    previous = application.status
    if status != previous:
        application.status = status
        log_application_activity(
            db,
            application_id=application.id,
            actor_id=actor.user_id,
            type="status_changed",
            message=f"Status changed to {status}",
            data={"from": previous, "to": status},
        )
        db.commit()
        db.refresh(application)

    logger.info(
        "Application %s status %s -> %s by user %s (admin=%s)",
        application.id,
        previous,
        status,
        actor.user_id,
        actor.is_admin,
    )
    return application


def fetch_resume(
    db: Session,
    storage: ResumeStorage,
    application_id: str,
    actor: Identity,
) -> tuple[Path, str]:
    """Returns (absolute path, original filename) for a recruiter/admin download."""
    application = get_application(db, application_id)
    if not actor.can_manage(application.recruiter_id):
        raise Forbidden("You do not have permission to download this resume.")

    path = storage.open_path(application.resume_reference)
    return path, application.resume_original_name


def _paginate(query: Query, page: int, limit: int) -> dict:
    page = max(1, int(page or 1))
    limit = max(1, min(int(limit or 1), MAX_PAGE_SIZE))

    total = query.count()
    rows = (
        query.order_by(desc(Application.created_at), desc(Application.id))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "applications": rows,
        "total": total,
        "total_pages": math.ceil(total / limit),
        "current_page": page,
    }


def list_for_applicant(db: Session, applicant_id: str) -> list[Application]:
    return (
        db.query(Application)
        .filter(Application.applicant_id == applicant_id)
        .order_by(desc(Application.created_at), desc(Application.id))
        .all()
    )


def list_for_job(
    db: Session,
    job_id: str,
    actor: Identity,
    *,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
) -> dict:
    if not is_valid_object_id(job_id):
        raise InvalidInput("Invalid Job ID format.")

    qry = db.query(Application).filter(Application.job_id == job_id)
    if not actor.is_admin:
        # Recruiters only ever see applications to their own postings.
        qry = qry.filter(Application.recruiter_id == actor.user_id)

    if status and status.strip() and status.strip().lower() != "all":
        qry = qry.filter(Application.status == status.strip())

    return _paginate(qry, page, limit)


def list_all(db: Session, actor: Identity, *, page: int = 1, limit: int = 20) -> dict:
    if not actor.is_admin:
        raise Forbidden("Forbidden: Only administrators can access all applications.")
    return _paginate(db.query(Application), page, limit)


def list_activity(db: Session, application_id: str, actor: Identity, *, limit: int = 50) -> list[ApplicationActivity]:
    application = get_application(db, application_id)
    if not actor.can_manage(application.recruiter_id):
        raise Forbidden("You do not have permission to view this application's history.")

    limit2 = max(1, min(int(limit or 50), 200))
    return (
        db.query(ApplicationActivity)
        .filter(ApplicationActivity.application_id == application.id)
        .order_by(desc(ApplicationActivity.created_at), desc(ApplicationActivity.id))
        .limit(limit2)
        .all()
    )

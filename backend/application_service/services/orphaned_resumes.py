from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from application_service.core.exceptions import ApplicationServiceError
from application_service.models.orphaned_resume import OrphanedResume
from application_service.services.resume_storage import ResumeStorage

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    checked: int = 0
    deleted: int = 0
    failed: int = 0


def record_orphaned_resume(db: Session, reference: str, *, reason: str, error: str | None = None) -> None:
    """
    Remember a staged resume whose compensating delete failed so the sweep can retry it.

    Best-effort: called on a failure path, so it logs instead of raising.
    """
    try:
        # Nothing from the failed submission may ride along with this commit.
        db.rollback()
        db.add(
            OrphanedResume(
                resume_reference=reference,
                reason=reason[:255] if reason else None,
                attempts=1,
                last_error=(error or "")[:1024] or None,
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not record orphaned resume %s", reference)


def sweep_orphaned_resumes(
    db: Session,
    storage: ResumeStorage,
    *,
    limit: int = 100,
    dry_run: bool = False,
) -> SweepResult:
    result = SweepResult()
    rows = (
        db.query(OrphanedResume)
        .filter(OrphanedResume.resolved_at.is_(None))
        .order_by(OrphanedResume.created_at.asc(), OrphanedResume.id.asc())
        .limit(max(1, int(limit)))
        .all()
    )

    for row in rows:
        result.checked += 1
        if dry_run:
            logger.info("[dry-run] would delete %s", row.resume_reference)
            continue
        try:
            storage.delete(row.resume_reference)
        except (OSError, ApplicationServiceError) as exc:
            row.attempts = int(row.attempts or 0) + 1
            row.last_error = str(exc)[:1024]
            result.failed += 1
            logger.warning("Orphaned resume %s still not deleted: %s", row.resume_reference, exc)
            continue
        row.resolved_at = datetime.now(timezone.utc)
        result.deleted += 1

    if not dry_run:
        db.commit()
    return result

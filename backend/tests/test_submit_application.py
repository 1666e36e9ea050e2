from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from application_service.models.application import Application
from application_service.models.application_activity import ApplicationActivity
from application_service.models.orphaned_resume import OrphanedResume
from application_service.services import submission as submission_service
from application_service.services.applications import ApplicationStoreError
from application_service.services.jobs_client import JobLookupError, JobNotFoundError
from application_service.services.profile_client import ProfileLookupError

from conftest import APPLICANT_ID, JOB_ID, RECRUITER_ID, make_job, staged_files, submit


def _assert_error(res, status: int, error: str, message: str | None = None):
    assert res.status_code == status, res.text
    body = res.json()
    assert body["error"] == error
    if message is not None:
        assert body["message"] == message


def test_submit_creates_application_with_snapshots(client, db_session, storage, profile_lookup):
    res = submit(client, cover_letter="  I would love to join.  ")
    assert res.status_code == 201, res.text
    body = res.json()

    assert body["job_id"] == JOB_ID
    assert body["applicant_id"] == APPLICANT_ID
    assert body["recruiter_id"] == RECRUITER_ID
    assert body["status"] == "Applied"
    assert body["cover_letter"] == "I would love to join."
    assert body["resume_original_name"] == "cv.pdf"
    assert body["job_snapshot"] == {
        "title": "Backend Engineer",
        "company_name": "Acme",
        "location": "Remote",
        "type": "Full-time",
    }
    assert body["applicant_snapshot"]["first_name"] == "Ada"
    assert body["applicant_snapshot"]["skills"] == ["python", "sql"]
    # The storage reference is internal.
    assert "resume_reference" not in body

    # The caller's own credential is what reaches the profile service.
    assert profile_lookup.tokens == ["applicant-token"]

    files = staged_files(storage)
    assert len(files) == 1
    row = db_session.query(Application).one()
    assert storage.resolve(row.resume_reference) == files[0].resolve()

    events = db_session.query(ApplicationActivity).filter(ApplicationActivity.application_id == row.id).all()
    assert [e.type for e in events] == ["application_submitted"]


def test_submit_without_cover_letter_stores_null(client):
    res = submit(client, cover_letter="   ")
    assert res.status_code == 201
    assert res.json()["cover_letter"] is None


def test_duplicate_submission_conflicts_and_removes_new_resume(client, db_session, storage, job_lookup):
    first = submit(client)
    assert first.status_code == 201

    second = submit(client)
    _assert_error(second, 409, "CONFLICT", "You have already applied for this job.")

    assert db_session.query(Application).count() == 1
    # Only the first resume is left; the duplicate's upload was compensated.
    assert len(staged_files(storage)) == 1
    # The pre-check short-circuits before the jobs service is asked again.
    assert job_lookup.calls == [JOB_ID]


def test_concurrent_insert_is_reported_as_conflict(client, db_session, storage, job_lookup):
    def _competing_submission(job_id: str):
        db_session.add(
            Application(
                job_id=job_id,
                job_snapshot={"title": "Backend Engineer"},
                applicant_id=APPLICANT_ID,
                applicant_snapshot={},
                recruiter_id=RECRUITER_ID,
                status="Applied",
                resume_reference="resumes/other.pdf",
                resume_original_name="other.pdf",
            )
        )
        db_session.commit()

    job_lookup.on_lookup = _competing_submission

    res = submit(client)
    _assert_error(res, 409, "CONFLICT", "You have already applied for this job.")

    assert db_session.query(Application).count() == 1
    assert staged_files(storage) == []


def test_closed_job_is_rejected(client, db_session, storage, job_lookup):
    job_lookup.job = make_job(status="closed")

    res = submit(client)
    _assert_error(res, 400, "INVALID_STATE", "Job is no longer open.")

    assert db_session.query(Application).count() == 0
    assert staged_files(storage) == []


def test_unknown_job_is_not_found(client, storage, job_lookup):
    job_lookup.error = JobNotFoundError("gone")

    res = submit(client)
    _assert_error(res, 404, "NOT_FOUND", "Job not found.")
    assert staged_files(storage) == []


def test_jobs_service_unreachable(client, db_session, storage, job_lookup):
    job_lookup.error = JobLookupError("timeout")

    res = submit(client)
    _assert_error(res, 500, "DEPENDENCY_UNAVAILABLE")
    assert db_session.query(Application).count() == 0
    assert staged_files(storage) == []


def test_job_without_recruiter_is_rejected(client, storage, job_lookup):
    job_lookup.job = make_job(recruiter_id=None)

    res = submit(client)
    _assert_error(res, 500, "DEPENDENCY_DATA_INVALID", "Job missing recruiter information.")
    assert staged_files(storage) == []


def test_profile_service_failure(client, db_session, storage, profile_lookup):
    profile_lookup.error = ProfileLookupError("401 from profile service")

    res = submit(client)
    _assert_error(res, 500, "DEPENDENCY_UNAVAILABLE")
    assert db_session.query(Application).count() == 0
    assert staged_files(storage) == []


def test_store_failure_removes_resume(client, db_session, storage, monkeypatch):
    def _fail(db, application):
        raise ApplicationStoreError("disk full")

    monkeypatch.setattr(submission_service, "insert_application", _fail)

    res = submit(client)
    _assert_error(res, 500, "STORAGE_ERROR")
    assert db_session.query(Application).count() == 0
    assert staged_files(storage) == []


@pytest.mark.parametrize("job_id", ["", "not-an-id", "64b7f0c2a1b2c3d4e5f6071"])
def test_invalid_job_id_is_rejected(client, storage, job_lookup, job_id):
    res = submit(client, job_id=job_id)
    _assert_error(res, 400, "VALIDATION_ERROR", "Valid Job ID is required.")
    assert staged_files(storage) == []
    assert job_lookup.calls == []


def test_missing_resume_is_rejected(client, job_lookup):
    res = client.post("/apply", data={"jobId": JOB_ID})
    _assert_error(res, 400, "VALIDATION_ERROR", "Resume file is required.")
    assert job_lookup.calls == []


def test_wrong_file_type_is_rejected(client, storage):
    res = submit(client, filename="cv.exe", content_type="application/octet-stream")
    _assert_error(res, 400, "VALIDATION_ERROR", "Only PDF, DOC, and DOCX files are allowed!")
    assert staged_files(storage) == []


def test_oversized_resume_is_rejected(client, storage):
    from application_service.core import config as app_config

    app_config.settings.MAX_UPLOAD_BYTES = 16

    res = submit(client, content=b"x" * 17)
    _assert_error(res, 413, "PAYLOAD_TOO_LARGE")
    assert staged_files(storage) == []


def test_failed_compensation_is_recorded_not_raised(client, db_session, storage, job_lookup, monkeypatch):
    job_lookup.job = make_job(status="closed")

    def _broken_delete(reference):
        raise OSError("read-only file system")

    monkeypatch.setattr(storage, "delete", _broken_delete)

    res = submit(client)
    # The caller still sees the original error.
    _assert_error(res, 400, "INVALID_STATE", "Job is no longer open.")

    orphan = db_session.query(OrphanedResume).one()
    assert orphan.resume_reference.startswith("resumes/resume-")
    assert orphan.reason == "INVALID_STATE"
    assert "read-only" in orphan.last_error
    assert orphan.resolved_at is None


def _raiser(exc: Exception):
    def _raise(*args, **kwargs):
        raise exc
    return _raise


@pytest.mark.parametrize(
    "method,exc,error",
    [
        (
            "commit",
            OperationalError("COMMIT", {}, Exception("canceling statement due to statement timeout")),
            "DEPENDENCY_UNAVAILABLE",
        ),
        ("flush", PoolTimeoutError("QueuePool limit of size 5 overflow 10 reached"), "DEPENDENCY_UNAVAILABLE"),
        (
            "commit",
            IntegrityError("INSERT INTO applications", {}, Exception("NOT NULL constraint failed: applications.status")),
            "STORAGE_ERROR",
        ),
        ("commit", SQLAlchemyError("unexpected driver state"), "STORAGE_ERROR"),
    ],
)
def test_store_write_failures_roll_back_and_remove_resume(client, db_session, storage, monkeypatch, method, exc, error):
    monkeypatch.setattr(db_session, method, _raiser(exc))

    res = submit(client)
    _assert_error(res, 500, error)

    monkeypatch.undo()
    assert db_session.query(Application).count() == 0
    assert db_session.query(ApplicationActivity).count() == 0
    assert staged_files(storage) == []


@pytest.mark.parametrize(
    "exc,error",
    [
        (OperationalError("SELECT", {}, Exception("could not connect to server")), "DEPENDENCY_UNAVAILABLE"),
        (SQLAlchemyError("unexpected driver state"), "STORAGE_ERROR"),
    ],
)
def test_duplicate_check_failure_removes_resume(client, db_session, storage, job_lookup, monkeypatch, exc, error):
    monkeypatch.setattr(db_session, "query", _raiser(exc))

    res = submit(client)
    _assert_error(res, 500, error)

    monkeypatch.undo()
    assert db_session.query(Application).count() == 0
    assert staged_files(storage) == []
    # Nothing downstream is asked once the store check fails.
    assert job_lookup.calls == []

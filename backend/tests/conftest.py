import os

# Ensure JWT_SECRET exists before importing application_service.main (it calls require_jwt_secret() at import time).
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")
# Keep the module-level engine off postgres; tests bind their own in-memory engine below.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from contextlib import contextmanager
from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import importlib

from application_service.auth.identity import Identity
from application_service.core.base import Base
from application_service.core import config as app_config

# Import models so they register with SQLAlchemy metadata.
from application_service.models.application import Application  # noqa: F401
from application_service.models.application_activity import ApplicationActivity  # noqa: F401
from application_service.models.orphaned_resume import OrphanedResume  # noqa: F401

from application_service.core.database import get_db
from application_service.dependencies.auth import get_current_user
from application_service.dependencies.services import (
    get_job_lookup,
    get_profile_lookup,
    get_resume_storage,
)
from application_service.services.jobs_client import JobDetails, JobLookupError
from application_service.services.profile_client import ProfileLookupError, ProfileSnapshot
from application_service.services.resume_storage import ResumeStorage

JOB_ID = "64b7f0c2a1b2c3d4e5f60718"
APPLICANT_ID = "64b7f0c2a1b2c3d4e5f60001"
RECRUITER_ID = "64b7f0c2a1b2c3d4e5f60002"
OTHER_RECRUITER_ID = "64b7f0c2a1b2c3d4e5f60003"
ADMIN_ID = "64b7f0c2a1b2c3d4e5f60004"


@dataclass
class FakeJobLookup:
    """Stands in for JobLookupClient; set `error` to make lookups fail."""

    job: JobDetails | None = None
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)
    on_lookup: object = None

    def get_job(self, job_id: str) -> JobDetails:
        self.calls.append(job_id)
        if self.on_lookup is not None:
            self.on_lookup(job_id)
        if self.error is not None:
            raise self.error
        if self.job is None:
            raise JobLookupError("no job configured")
        return self.job


@dataclass
class FakeProfileLookup:
    profile: ProfileSnapshot | None = None
    error: Exception | None = None
    tokens: list[str] = field(default_factory=list)

    def get_my_profile(self, bearer_token: str) -> ProfileSnapshot:
        self.tokens.append(bearer_token)
        if self.error is not None:
            raise self.error
        if self.profile is None:
            raise ProfileLookupError("no profile configured")
        return self.profile


def make_job(**overrides) -> JobDetails:
    values = {
        "job_id": JOB_ID,
        "title": "Backend Engineer",
        "company_name": "Acme",
        "location": "Remote",
        "type": "Full-time",
        "status": "open",
        "recruiter_id": RECRUITER_ID,
    }
    values.update(overrides)
    return JobDetails(**values)


def make_profile() -> ProfileSnapshot:
    return ProfileSnapshot(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        phone="555-0100",
        headline="Engineer",
        skills=["python", "sql"],
    )


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # Important: because we use an in-memory SQLite DB with StaticPool, the DB
    # persists across tests. Reset schema per test to avoid cross-test coupling.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _reset_mutable_settings():
    """
    Tests sometimes tweak global settings (app_config.settings.*). Because that object is
    process-global, we must restore values after each test to avoid cross-test coupling.
    """
    keys = [
        "MAX_UPLOAD_BYTES",
        "ENABLE_RATE_LIMITING",
        "JOBS_SERVICE_URL",
        "PROFILE_SERVICE_URL",
        "UPLOADS_DIR",
    ]
    original = {k: getattr(app_config.settings, k) for k in keys}
    try:
        yield
    finally:
        for k, v in original.items():
            setattr(app_config.settings, k, v)
        # Default all tests to "rate limiting disabled" unless a test explicitly reloads routes with it enabled.
        app_config.settings.ENABLE_RATE_LIMITING = False


@pytest.fixture()
def storage(tmp_path):
    return ResumeStorage(tmp_path / "uploads", app_config.settings.MAX_UPLOAD_BYTES)


@pytest.fixture()
def job_lookup():
    return FakeJobLookup(job=make_job())


@pytest.fixture()
def profile_lookup():
    return FakeProfileLookup(profile=make_profile())


@pytest.fixture()
def app(db_session, storage, job_lookup, profile_lookup):
    # Ensure settings has a JWT secret even if imported earlier.
    app_config.settings.JWT_SECRET = app_config.settings.JWT_SECRET or "test_jwt_secret"
    # Default to disabled for the general test suite.
    app_config.settings.ENABLE_RATE_LIMITING = False

    # IMPORTANT:
    # SlowAPI decorators bind at import time, so we reload the routes + app with rate limiting disabled
    # to avoid cross-test contamination (the rate limiting test reloads modules with it enabled).
    import application_service.routes.applications as application_routes
    import application_service.main as main

    importlib.reload(application_routes)
    importlib.reload(main)
    fastapi_app = main.app

    def override_get_db():
        yield db_session

    def override_get_resume_storage():
        # Re-read the limit so tests can shrink MAX_UPLOAD_BYTES.
        storage.max_bytes = app_config.settings.MAX_UPLOAD_BYTES
        return storage

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_resume_storage] = override_get_resume_storage
    fastapi_app.dependency_overrides[get_job_lookup] = lambda: job_lookup
    fastapi_app.dependency_overrides[get_profile_lookup] = lambda: profile_lookup
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def users():
    """
    Callers used across tests: an applicant, the job's recruiter, a second
    recruiter who does not own the job, and an administrator.
    """
    return {
        "applicant": Identity(user_id=APPLICANT_ID, role="applicant", user_type="applicant", token="applicant-token"),
        "recruiter": Identity(user_id=RECRUITER_ID, role="recruiter", user_type="recruiter", token="recruiter-token"),
        "other_recruiter": Identity(
            user_id=OTHER_RECRUITER_ID, role="recruiter", user_type="recruiter", token="other-token"
        ),
        "admin": Identity(user_id=ADMIN_ID, role="admin", user_type="admin", token="admin-token"),
    }


@pytest.fixture()
def client(app, users):
    """
    Default client authenticated as the applicant.
    """
    app.dependency_overrides[get_current_user] = lambda: users["applicant"]
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture()
def client_for(app):
    """
    Context manager to create a client authenticated as an arbitrary identity.

    Usage:
        with client_for(users["recruiter"]) as c:
            ...
    """

    @contextmanager
    def _client_for(user: Identity):
        app.dependency_overrides[get_current_user] = lambda: user
        with TestClient(app) as c:
            yield c
        app.dependency_overrides.pop(get_current_user, None)

    return _client_for


def staged_files(storage: ResumeStorage) -> list:
    directory = storage.root / "resumes"
    if not directory.exists():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file())


def submit(client, *, job_id: str = JOB_ID, filename: str = "cv.pdf", content: bytes = b"%PDF-1.4 resume",
           content_type: str = "application/pdf", cover_letter: str | None = "Hello"):
    data = {"jobId": job_id}
    if cover_letter is not None:
        data["coverLetter"] = cover_letter
    return client.post("/apply", data=data, files={"resume": (filename, content, content_type)})

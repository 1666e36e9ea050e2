from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from application_service.core.config import settings


def engine_options(url: str) -> dict[str, Any]:
    """
    Time limits for the store so a dead or stuck Postgres cannot hold a request open.

    SQLite (local dev, tests) takes none of these.
    """
    if not url.startswith("postgresql"):
        return {}
    return {
        "pool_timeout": settings.DB_POOL_TIMEOUT_SECONDS,
        "connect_args": {
            "connect_timeout": settings.DB_CONNECT_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
        },
    }


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,   # checks stale connections
    **engine_options(settings.database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

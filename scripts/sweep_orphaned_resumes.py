"""
Retry deletion of staged resumes whose compensating delete failed.

What it does:
- Reads unresolved rows from orphaned_resumes (oldest first).
- Deletes each referenced file under UPLOADS_DIR (missing files count as deleted).
- Marks successes resolved; bumps attempts/last_error on failure.

Safe to run repeatedly (cron / scheduled task). Use --dry-run to only list.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys


# Allow `import application_service.*` from backend/ without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = REPO_ROOT / "backend"
sys.path.insert(0, str(BACKEND_DIR))


from application_service.core.config import settings  # noqa: E402
from application_service.core.database import SessionLocal  # noqa: E402
from application_service.core.logging import configure_logging  # noqa: E402
from application_service.services.orphaned_resumes import sweep_orphaned_resumes  # noqa: E402
from application_service.services.resume_storage import ResumeStorage  # noqa: E402

logger = logging.getLogger("sweep_orphaned_resumes")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete resumes left behind by failed submissions.")
    parser.add_argument("--limit", type=int, default=100, help="Max rows to process (default 100).")
    parser.add_argument("--dry-run", action="store_true", help="List what would be deleted, change nothing.")
    args = parser.parse_args(argv)

    configure_logging()
    storage = ResumeStorage(settings.UPLOADS_DIR, settings.MAX_UPLOAD_BYTES)
    logger.info("Sweeping orphaned resumes under %s (limit=%d dry_run=%s)", storage.canonical_root, args.limit, args.dry_run)

    with SessionLocal() as db:
        result = sweep_orphaned_resumes(db, storage, limit=args.limit, dry_run=args.dry_run)

    print(f"Done. checked={result.checked} deleted={result.deleted} failed={result.failed}")
    return 1 if result.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())

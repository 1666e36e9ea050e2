"""
Local disk storage for uploaded resumes.

A resume is *staged* before the application that owns it exists. The caller
either keeps it (the application row now references it) or deletes it as
compensation when the submission fails.

References are POSIX paths relative to the storage root (``resumes/<name>``);
the root itself is never stored so the uploads directory can move.
"""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from application_service.core.exceptions import (
    Forbidden,
    InvalidInput,
    NotFound,
    PayloadTooLarge,
    StorageError,
)

logger = logging.getLogger(__name__)

RESUME_SUBDIR = "resumes"
CHUNK_SIZE = 64 * 1024

ALLOWED_EXTENSIONS = {".pdf", ".doc", ".docx"}
ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "application/x-pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


@dataclass(frozen=True)
class StagedResume:
    reference: str
    original_name: str
    path: Path
    size_bytes: int


def _normalize_content_type(raw: str | None) -> str:
    return (raw or "").split(";", 1)[0].strip().lower()


class ResumeStorage:
    def __init__(self, root: str | Path, max_bytes: int) -> None:
        self.root = Path(root)
        self.max_bytes = max_bytes

    @property
    def canonical_root(self) -> Path:
        return self.root.resolve()

    def _max_size_message(self) -> str:
        max_mb = self.max_bytes / (1024 * 1024)
        return f"File too large. Max allowed size is {max_mb:.1f} MB."

    def validate_upload(self, filename: str | None, content_type: str | None) -> str:
        """Returns the cleaned original filename or raises InvalidInput."""
        original_name = Path((filename or "").replace("\\", "/")).name.strip()
        if not original_name:
            raise InvalidInput("Resume file is required.")

        extension = Path(original_name).suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise InvalidInput("Only PDF, DOC, and DOCX files are allowed!")
        if _normalize_content_type(content_type) not in ALLOWED_CONTENT_TYPES:
            raise InvalidInput("Only PDF, DOC, and DOCX files are allowed!")
        return original_name

    def stage(self, fileobj: BinaryIO, filename: str | None, content_type: str | None) -> StagedResume:
        """
        Copy an upload onto durable storage under a unique name.

        Nothing is left on disk when this raises.
        """
        original_name = self.validate_upload(filename, content_type)
        extension = Path(original_name).suffix.lower()

        directory = self.root / RESUME_SUBDIR
        stored_name = f"resume-{int(time.time() * 1000)}-{uuid.uuid4()}{extension}"
        path = directory / stored_name

        written = 0
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as out:
                while True:
                    chunk = fileobj.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise PayloadTooLarge(self._max_size_message())
                    out.write(chunk)
        except PayloadTooLarge:
            path.unlink(missing_ok=True)
            raise
        except OSError as exc:
            path.unlink(missing_ok=True)
            logger.exception("Failed to stage resume %s", original_name)
            raise StorageError("Could not store the uploaded resume.") from exc

        if written == 0:
            path.unlink(missing_ok=True)
            raise InvalidInput("Resume file is empty.")

        reference = f"{RESUME_SUBDIR}/{stored_name}"
        logger.debug("Staged resume %s as %s (%d bytes)", original_name, reference, written)
        return StagedResume(
            reference=reference,
            original_name=original_name,
            path=path,
            size_bytes=written,
        )

    def resolve(self, reference: str) -> Path:
        """
        Map a stored reference to an absolute path inside the storage root.

        The check runs on the fully resolved path (``..`` segments, absolute
        references and symlinks included), so nothing outside the root is reachable.
        """
        root = self.canonical_root
        candidate = (root / (reference or "")).resolve()
        if not candidate.is_relative_to(root):
            logger.warning("Attempted to access file outside uploads directory: %s", candidate)
            raise Forbidden("Forbidden: Invalid file path.")
        return candidate

    def open_path(self, reference: str) -> Path:
        path = self.resolve(reference)
        if not path.is_file():
            raise NotFound("Resume file not found on server.")
        return path

    def delete(self, reference: str) -> None:
        """Remove a stored resume. A file that is already gone is not an error."""
        self.resolve(reference).unlink(missing_ok=True)

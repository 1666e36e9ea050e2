from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

CLOSED_JOB_STATUSES = {"closed"}


class JobLookupError(Exception):
    """Base exception for job lookups that could not be completed."""


class JobNotFoundError(JobLookupError):
    """Raised when the jobs service answers 404 for the id."""


@dataclass(frozen=True)
class JobDetails:
    job_id: str
    title: str | None
    company_name: str | None
    location: str | None
    type: str | None
    status: str | None
    recruiter_id: str | None

    @property
    def is_open(self) -> bool:
        return (self.status or "").strip().lower() not in CLOSED_JOB_STATUSES

    def snapshot(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "company_name": self.company_name,
            "location": self.location,
            "type": self.type,
        }


def _as_id(value: Any) -> str | None:
    # postedBy may come back populated ({"_id": ...}) or as a bare id.
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_job(job_id: str, payload: dict[str, Any]) -> JobDetails:
    return JobDetails(
        job_id=job_id,
        title=payload.get("title"),
        company_name=payload.get("company") or payload.get("companyName"),
        location=payload.get("location"),
        type=payload.get("type"),
        status=payload.get("status"),
        recruiter_id=_as_id(payload.get("postedBy")) or _as_id(payload.get("recruiterId")),
    )


class JobLookupClient:
    """Reads job records from the jobs service."""

    def __init__(self, http_client: httpx.Client, base_url: str, *, timeout: float) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def get_job(self, job_id: str) -> JobDetails:
        """
        Raises:
            JobNotFoundError: the jobs service does not know the id.
            JobLookupError: transport failure, timeout, error status or unreadable body.
        """
        if not self._base_url:
            raise JobLookupError("JOBS_SERVICE_URL is not configured")

        url = f"{self._base_url}/api/jobs/{job_id}"
        try:
            response = self._http.get(url, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise JobLookupError(f"Jobs service request failed: {exc}") from exc

        if response.status_code == 404:
            raise JobNotFoundError(f"Job {job_id} not found")
        if response.status_code >= 400:
            raise JobLookupError(f"Jobs service answered {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise JobLookupError("Jobs service returned invalid JSON") from exc

        if not isinstance(payload, dict) or not payload:
            # An empty body for a 2xx is treated like a missing job.
            raise JobNotFoundError(f"Job {job_id} not found")

        return parse_job(job_id, payload)

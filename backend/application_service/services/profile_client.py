from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx


class ProfileLookupError(Exception):
    """Raised when the caller's profile could not be fetched."""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _skills(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [s for s in (_text(v) for v in value) if s]


@dataclass(frozen=True)
class ProfileSnapshot:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    headline: str = ""
    skills: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ProfileSnapshot:
        return cls(
            first_name=_text(payload.get("firstName")),
            last_name=_text(payload.get("lastName")),
            email=_text(payload.get("email")),
            phone=_text(payload.get("phone")),
            headline=_text(payload.get("headline")),
            skills=_skills(payload.get("skills")),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "headline": self.headline,
            "skills": list(self.skills),
        }


class ProfileLookupClient:
    """Reads the caller's own profile from the profile service."""

    def __init__(self, http_client: httpx.Client, base_url: str, *, timeout: float) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def get_my_profile(self, bearer_token: str) -> ProfileSnapshot:
        """
        Fetch ``/me`` with the caller's own bearer token.

        Raises:
            ProfileLookupError: on any failure (missing config or token, transport,
                timeout, error status, unreadable body).
        """
        if not self._base_url:
            raise ProfileLookupError("PROFILE_SERVICE_URL is not configured")
        if not bearer_token:
            raise ProfileLookupError("No caller credential to forward")

        url = f"{self._base_url}/api/v1/profile/me"
        try:
            response = self._http.get(
                url,
                headers={"Authorization": f"Bearer {bearer_token}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise ProfileLookupError(f"Profile service request failed: {exc}") from exc

        if response.status_code >= 400:
            raise ProfileLookupError(f"Profile service answered {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProfileLookupError("Profile service returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise ProfileLookupError("Profile service returned an unexpected body")

        return ProfileSnapshot.from_payload(payload)

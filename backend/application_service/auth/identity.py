# application_service/auth/identity.py
"""
Canonical authenticated identity model.

Tokens are issued by the auth service and only verified here. Downstream code
asks "who is calling?" through Identity instead of reading raw JWT claims.

The Identity object is INTERNAL ONLY and should not be returned to clients.
It's used for authorization decisions, audit logging and for forwarding the
caller's credential to sibling services.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Identity:
    """
    Attributes:
        user_id: The ``userId`` claim; the caller's id in the auth service.
        role: The ``role`` claim (``admin``, ``recruiter``, ``applicant``...).
        user_type: The ``userType`` claim, kept for audit only.
        token: The raw bearer token exactly as received. Forwarded to sibling
               services on the caller's behalf; never re-signed.
        raw_claims: Full claims for debugging. Not used for authorization.
    """

    user_id: str
    role: str | None = None
    user_type: str | None = None
    token: str = field(default="", repr=False)
    raw_claims: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_admin(self) -> bool:
        return (self.role or "").strip().lower() == ADMIN_ROLE

    @classmethod
    def from_claims(cls, claims: dict[str, Any], token: str) -> Identity:
        """
        Build an identity from verified claims.

        Raises:
            ValueError: if the token carries no ``userId``.
        """
        user_id = str(claims.get("userId") or "").strip()
        if not user_id:
            raise ValueError("Token missing 'userId'")
        return cls(
            user_id=user_id,
            role=claims.get("role"),
            user_type=claims.get("userType"),
            token=token,
            raw_claims=dict(claims),
        )

    def can_manage(self, recruiter_id: str | None) -> bool:
        """Recruiter who owns the job, or an administrator."""
        return self.is_admin or (recruiter_id is not None and str(recruiter_id) == self.user_id)

# application_service/core/security.py
from __future__ import annotations

from typing import Any

from jose import jwt

from application_service.core.config import settings


def _require_jwt_secret() -> None:
    # Auth is always on -> JWT_SECRET must always exist
    if not settings.JWT_SECRET or not settings.JWT_SECRET.strip():
        raise RuntimeError("JWT_SECRET must be set (auth is required).")


def decode_token(token: str) -> dict[str, Any]:
    """
    Verify signature + exp of a token issued by the auth service.
    Raises jose.ExpiredSignatureError / jose.JWTError; callers map those to 401s.
    """
    _require_jwt_secret()
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])

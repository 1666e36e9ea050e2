# application_service/dependencies/auth.py
from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError

from application_service.auth.identity import Identity
from application_service.core.security import decode_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Token is invalid") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """
    Validates:
      - Authorization: Bearer <token>
      - token signature + exp
      - userId claim present
    Returns:
      - Identity carrying the raw token for forwarding to sibling services
    """
    if not creds or creds.scheme.lower() != "bearer" or not creds.credentials:
        raise _unauthorized("No token, authorization denied")

    try:
        claims = decode_token(creds.credentials)
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        logger.info("Rejected invalid bearer token")
        raise _unauthorized("Token is invalid")

    try:
        return Identity.from_claims(claims, token=creds.credentials)
    except ValueError:
        raise _unauthorized("Token is invalid")

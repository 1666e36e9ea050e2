# application_service/auth/__init__.py
"""
Authentication modules for the application service.

This package contains:
- identity.py: Verified caller identity built from the auth service's JWT claims
"""
from application_service.auth.identity import Identity

__all__ = ["Identity"]

"""
Auth utilities for the QuickPlay API.

Validates bearer JWTs and extracts the user id from the `sub` claim.
Falls back to the X-User-Id header when ALLOW_HEADER_AUTH is on (dev, tests).
"""
import hmac

from fastapi import Header, Request
from typing import Optional
import logging

import jwt

from quickplay.core.config import settings
from quickplay.core.errors import PermissionError, UnauthenticatedError

logger = logging.getLogger(__name__)


def _algorithms() -> list[str]:
    return [alg.strip() for alg in settings.AUTH_JWT_ALGORITHMS.split(",") if alg.strip()]


def verify_jwt(token: str) -> str:
    """
    Verify a bearer JWT and return its subject.

    Raises:
        UnauthenticatedError: token invalid, expired, or no secret configured
    """
    if not settings.AUTH_JWT_SECRET:
        raise UnauthenticatedError("Bearer tokens are not accepted: AUTH_JWT_SECRET is not configured")

    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=_algorithms(),
            options={"verify_signature": True, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise UnauthenticatedError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthenticatedError("Token has no subject")
    return str(user_id)


async def get_optional_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Dev/test user id"),
) -> Optional[str]:
    """
    Resolve the signed-in user, or None when the request carries no credentials.

    A present-but-invalid bearer token is still rejected.
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return verify_jwt(auth_header[7:])

    if x_user_id and settings.ALLOW_HEADER_AUTH:
        return x_user_id.strip() or None

    return None


async def get_current_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Dev/test user id"),
) -> str:
    """
    Extract current user ID from request context.

    Priority:
    1. Bearer JWT from Authorization header
    2. X-User-Id header (when ALLOW_HEADER_AUTH)
    3. UnauthenticatedError (401)
    """
    user_id = await get_optional_user_id(request, x_user_id)
    if not user_id:
        raise UnauthenticatedError("Missing Authorization (Bearer JWT) or X-User-Id header")
    return user_id


def require_admin_key(request: Request) -> None:
    """Admin jobs require the X-Admin-Key header to match ADMIN_KEY."""
    expected_key = settings.ADMIN_KEY
    if not expected_key:
        raise PermissionError("Admin endpoints are disabled: ADMIN_KEY is not configured")

    header_key = request.headers.get("X-Admin-Key", "").strip()
    if not header_key or not hmac.compare_digest(header_key, expected_key):
        raise PermissionError("Invalid or missing X-Admin-Key")

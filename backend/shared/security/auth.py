"""
Authentication and authorization utilities for staff.

Staff (admin, manager, kitchen, waiter) authenticate with short-lived HS256
JWTs. Customers never hold tokens: their capability is the session code in
the URL, checked by the session guard.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Header, HTTPException, status

from shared.config.settings import (
    JWT_SECRET,
    JWT_ISSUER,
    JWT_AUDIENCE,
    settings,
)
from shared.config.constants import Roles
from shared.config.logging import get_logger
from shared.utils.exceptions import InsufficientRoleError

logger = get_logger(__name__)


# =============================================================================
# JWT Functions
# =============================================================================


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """
    Sign a staff access token.

    Args:
        payload: Claims to include (sub, roles, name).
        ttl_seconds: Token lifetime in seconds. Defaults to the configured access expiry.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": "access",
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def sign_staff_token(staff_id: str, roles: list[str], name: str | None = None) -> str:
    """Issue an access token for a staff member with the given roles."""
    unknown = set(roles) - set(Roles.ALL)
    if unknown:
        raise ValueError(f"Unknown roles: {sorted(unknown)}")
    payload: dict[str, Any] = {"sub": str(staff_id), "roles": list(roles)}
    if name:
        payload["name"] = name
    return sign_jwt(payload)


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a staff access token.

    Raises:
        HTTPException: If the token is invalid, expired or missing claims.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        logger.warning("JWT validation failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject claim",
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: invalid type claim",
        )

    roles = payload.get("roles")
    if not isinstance(roles, list) or not roles:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing roles claim",
        )

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        HTTPException: If header is missing or malformed.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
        )
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header format. Expected: Bearer <token>",
        )
    return authorization.split(" ", 1)[1].strip()


def current_staff_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current staff context from JWT.

    Usage:
        @router.get("/api/staff/tables")
        def list_tables(ctx = Depends(current_staff_context)):
            staff_id = ctx["sub"]
            ...
    """
    token = get_bearer_token(authorization)
    return verify_jwt(token)


def require_roles(ctx: dict[str, Any], allowed: list[str]) -> None:
    """
    Verify that the staff member has at least one of the allowed roles.

    Raises:
        InsufficientRoleError: If none of the caller's roles is allowed.
    """
    staff_roles = set(ctx.get("roles", []))
    if not staff_roles.intersection(set(allowed)):
        raise InsufficientRoleError(list(allowed), staff_id=ctx.get("sub"))

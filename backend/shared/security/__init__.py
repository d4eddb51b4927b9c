"""
Security module: Staff authentication and rate limiting.
"""

from shared.security.auth import (
    sign_jwt,
    sign_staff_token,
    verify_jwt,
    get_bearer_token,
    current_staff_context,
    require_roles,
)
from shared.security.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
)

__all__ = [
    # auth
    "sign_jwt",
    "sign_staff_token",
    "verify_jwt",
    "get_bearer_token",
    "current_staff_context",
    "require_roles",
    # rate_limit
    "limiter",
    "rate_limit_exceeded_handler",
]

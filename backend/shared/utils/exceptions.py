"""
Centralized HTTP exceptions for consistent error handling.

Usage:
    from shared.utils.exceptions import NotFoundError, ValidationError

    raise TableNotFoundError("T-07")
    raise ValidationError("Phone number must have 10-15 digits", field="phone")
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions inherit from this class to ensure consistent
    logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: Any,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        message = detail if isinstance(detail, str) else detail.get("message", str(detail))
        log_fn(message, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Order", 123)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} '{entity_id}' not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class TableNotFoundError(NotFoundError):
    """Table or terminal not found."""

    def __init__(self, table_id: str | None = None, **log_context: Any):
        super().__init__("Table", table_id, **log_context)


class OrderNotFoundError(NotFoundError):
    """Order not found."""

    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("end all terminal sessions")
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        if action:
            detail = f"Not allowed to {action}"
        else:
            detail = "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


class InsufficientRoleError(ForbiddenError):
    """Staff member doesn't have the required role."""

    def __init__(self, required_roles: list[str], **log_context: Any):
        roles_str = ", ".join(sorted(required_roles))
        super().__init__(
            f"perform this action (requires role: {roles_str})",
            required_roles=sorted(required_roles),
            **log_context,
        )


class SessionBlockedError(AppException):
    """
    The session guard blocked a customer request (403).

    The detail is a dict so clients can show the reason-specific message and
    the recovery actions (rescan / go home) instead of a dead end.
    """

    def __init__(
        self,
        reason: str,
        message: str,
        recovery: list[dict[str, str]],
        **log_context: Any,
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"reason": reason, "message": message, "recovery": recovery},
            log_level="info",
            reason=reason,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Quantity must be positive", field="quantity")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class FieldValidationError(AppException):
    """
    Inline validation error tied to one input field (400).

    The response detail names the field so forms can show the message next to it.
    """

    def __init__(self, field: str, message: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"field": field, "message": message},
            log_level="info",
            field=field,
            **log_context,
        )


class InvalidTransitionError(ValidationError):
    """Invalid order status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Invalid transition from '{from_status}' to '{to_status}' for {entity}"
        super().__init__(detail, entity=entity, from_status=from_status, to_status=to_status, **log_context)


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409).

    Usage:
        raise ConflictError("Order was updated by someone else")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class DuplicateEntityError(ConflictError):
    """Entity already exists."""

    def __init__(self, entity: str, identifier: str | None = None, **log_context: Any):
        if identifier:
            detail = f"{entity} '{identifier}' already exists"
        else:
            detail = f"{entity} already exists"

        super().__init__(detail, entity=entity, identifier=identifier, **log_context)


class ConfirmationRequiredError(AppException):
    """
    Destructive staff action attempted without explicit confirmation (428).

    Clients repeat the request with ?confirm=true after asking the user.
    """

    def __init__(self, action: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_428_PRECONDITION_REQUIRED,
            detail=f"Confirmation required to {action}. Repeat the request with confirm=true.",
            log_level="info",
            action=action,
            **log_context,
        )


# =============================================================================
# 5xx Errors
# =============================================================================


class BackendUnavailableError(AppException):
    """
    Persistence backend unreachable or unconfigured (503).

    Administrative actions surface this instead of silently doing nothing.
    """

    def __init__(self, operation: str | None = None, retry_after: int | None = None, **log_context: Any):
        detail = "Backend unavailable"
        if operation:
            detail = f"Backend unavailable during {operation}. Please try again."

        headers = {"Retry-After": str(retry_after)} if retry_after else None

        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            log_level="error",
            headers=headers,
            operation=operation,
            **log_context,
        )

"""
Utilities module: Exceptions, validators, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    ConflictError,
    BackendUnavailableError,
)
from shared.utils.validators import (
    normalize_phone,
    validate_customer_name,
    validate_table_id,
    validate_quantity,
)
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ConflictError",
    "BackendUnavailableError",
    # validators
    "normalize_phone",
    "validate_customer_name",
    "validate_table_id",
    "validate_quantity",
    # schemas
    "ErrorResponse",
]

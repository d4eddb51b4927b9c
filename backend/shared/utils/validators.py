"""
Shared validators for input sanitization.

Validators raise ValueError with a user-facing message; routers and services
turn that into the appropriate HTTP error for their context.
"""

import re

from shared.config.constants import Limits

_NON_DIGITS = re.compile(r"\D")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
# Table identifiers end up in URLs and Redis channel names
_TABLE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def normalize_phone(phone: str | None) -> str:
    """
    Strip every non-digit character and check the remaining length.

    Args:
        phone: Raw phone as typed ("+56 9 1234-5678")

    Returns:
        Digits only ("56912345678")

    Raises:
        ValueError: If fewer than 10 or more than 15 digits remain
    """
    digits = _NON_DIGITS.sub("", phone or "")
    if len(digits) < Limits.MIN_PHONE_DIGITS or len(digits) > Limits.MAX_PHONE_DIGITS:
        raise ValueError(
            f"Phone number must have between {Limits.MIN_PHONE_DIGITS} "
            f"and {Limits.MAX_PHONE_DIGITS} digits"
        )
    return digits


def phone_search_digits(phone: str | None) -> str:
    """Digits of a (possibly partial) phone typed into a staff search box."""
    digits = _NON_DIGITS.sub("", phone or "")
    if not digits:
        raise ValueError("Phone search needs at least one digit")
    if len(digits) > Limits.MAX_PHONE_DIGITS:
        raise ValueError(f"Phone number has at most {Limits.MAX_PHONE_DIGITS} digits")
    return digits


def validate_customer_name(name: str | None) -> str:
    """
    Validate and normalize a customer display name.

    Raises:
        ValueError: If the name is empty after trimming or too long
    """
    cleaned = _CONTROL_CHARS.sub("", (name or "")).strip()
    if not cleaned:
        raise ValueError("Name is required")
    if len(cleaned) > Limits.MAX_NAME_LENGTH:
        raise ValueError(f"Name must be at most {Limits.MAX_NAME_LENGTH} characters")
    return cleaned


def validate_table_id(table_id: str | None) -> str:
    """
    Validate a human readable table identifier ("1", "T-07").

    Raises:
        ValueError: If empty, too long or containing characters unsafe for URLs
    """
    table_id = (table_id or "").strip()
    if not table_id:
        raise ValueError("Table id is required")
    if len(table_id) > Limits.MAX_TABLE_ID_LENGTH:
        raise ValueError(f"Table id must be at most {Limits.MAX_TABLE_ID_LENGTH} characters")
    if not _TABLE_ID_PATTERN.match(table_id):
        raise ValueError("Table id may only contain letters, digits, '-' and '_'")
    return table_id


def validate_quantity(
    quantity: int,
    min_val: int = Limits.MIN_QUANTITY,
    max_val: int = Limits.MAX_QUANTITY,
) -> int:
    """
    Validate quantity is within acceptable range.

    Raises:
        ValueError: If quantity is outside allowed range
    """
    if quantity < min_val:
        raise ValueError(f"Minimum quantity is {min_val}")
    if quantity > max_val:
        raise ValueError(f"Maximum quantity is {max_val}")
    return quantity


def sanitize_text(value: str | None, max_length: int = 255) -> str:
    """Trim, drop control characters and cap length of free text (item names)."""
    if not value:
        return ""
    value = _CONTROL_CHARS.sub("", value.strip())
    return value[:max_length]

"""
Shared router helpers: dependencies and domain error mapping.
"""

from .deps import (
    get_lifecycle,
    get_registry,
    get_guard,
    get_store_opener,
    get_order_manager,
    require_active_session,
    get_cart,
    any_staff,
    floor_staff,
    management,
)
from .errors import translate_domain_errors

__all__ = [
    "get_lifecycle",
    "get_registry",
    "get_guard",
    "get_store_opener",
    "get_order_manager",
    "require_active_session",
    "get_cart",
    "any_staff",
    "floor_staff",
    "management",
    "translate_domain_errors",
]

"""
Staff routers - /api/staff/*
Require a staff JWT; roles are checked per endpoint.
"""

from .tables import router as tables_router
from .orders import router as orders_router
from .customers import router as customers_router

__all__ = ["tables_router", "orders_router", "customers_router"]

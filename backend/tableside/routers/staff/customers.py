"""
Staff customer router.

Visitors who entered their name and phone at a terminal. Managers list
them, search by phone and look up who was behind one visit.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from shared.config.logging import staff_logger as logger, mask_phone, mask_session_code
from shared.utils.schemas import SessionCustomerOutput
from tableside.routers._common import get_lifecycle, management, translate_domain_errors
from tableside.services.domain import SessionLifecycleManager

router = APIRouter(prefix="/api/staff/customers", tags=["staff-customers"])


@router.get("", response_model=list[SessionCustomerOutput])
def list_customers(
    phone: str | None = Query(default=None, max_length=40),
    session: str | None = Query(default=None, max_length=128),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
    ctx: dict[str, Any] = Depends(management),
):
    """Newest visitors first; ?phone= matches full or partial numbers."""
    with translate_domain_errors("list customers"):
        customers = lifecycle.find_customers(phone=phone, session_code=session)
    if phone is not None:
        logger.info("Customer search", phone=mask_phone(phone), results=len(customers), staff_id=ctx["sub"])
    return [SessionCustomerOutput.model_validate(c) for c in customers]


@router.get("/{table_id}/{session_code}", response_model=SessionCustomerOutput)
def get_customer(
    table_id: str,
    session_code: str,
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
    ctx: dict[str, Any] = Depends(management),
):
    with translate_domain_errors("get customer"):
        customer = lifecycle.get_customer(table_id, session_code)
    logger.info(
        "Customer looked up",
        table_id=table_id,
        session_code=mask_session_code(session_code),
        staff_id=ctx["sub"],
    )
    return SessionCustomerOutput.model_validate(customer)

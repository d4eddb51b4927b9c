"""
Cart Models: CartItem scoped to a (table, session) pair.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IdType, TimestampMixin


class CartItem(TimestampMixin, Base):
    """
    One line of a customer cart.

    session_id is "{table_number}-{session_code}", never the table number
    alone, so a new session at the same table starts with an empty cart.
    A quantity reaching zero deletes the row.
    """

    __tablename__ = "cart_item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(192), nullable=False, index=True)
    table_number: Mapped[str] = mapped_column(String(32), nullable=False)
    menu_item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    item_name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)  # unit price
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    item_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("session_id", "menu_item_id", name="uq_cart_item_session_menu_item"),
        CheckConstraint("quantity >= 1 AND quantity <= 99", name="chk_cart_item_quantity"),
        CheckConstraint("price >= 0", name="chk_cart_item_price"),
    )

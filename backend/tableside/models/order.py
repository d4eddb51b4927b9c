"""
Order Models: Order, OrderItem.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IdType, TimestampMixin


class Order(TimestampMixin, Base):
    """
    A customer order placed from a cart.

    Items are a snapshot taken at creation (or replaced by staff), so the total
    never depends on current menu data. Orders are never deleted; archived is
    the terminal status.
    """

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    table_number: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    session_code: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", index=True)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    estimated_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'preparing', 'ready', 'completed', 'archived')",
            name="chk_customer_order_status",
        ),
        CheckConstraint("total >= 0", name="chk_customer_order_total"),
        Index("ix_customer_order_table_status", "table_number", "status"),
    )


class OrderItem(Base):
    """Snapshot of one cart line at order time."""

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    menu_item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    item_name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="chk_order_item_quantity"),
    )

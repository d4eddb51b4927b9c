"""
Table and Session Models: DiningTable, TableSession, SessionCustomer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IdType, TimestampMixin


class DiningTable(TimestampMixin, Base):
    """
    A physical table or a self-service terminal.

    session_active is never stored here; it is derived from table_session.
    status is advisory and not enforced against sessions.
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "dining_table"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    table_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)  # "1", "T-07"
    name: Mapped[str] = mapped_column(Text, nullable=False)
    seats: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # null for terminals
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="regular")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="available", index=True)

    __table_args__ = (
        CheckConstraint("type IN ('regular', 'terminal')", name="chk_dining_table_type"),
        CheckConstraint(
            "status IN ('available', 'occupied', 'reserved')",
            name="chk_dining_table_status",
        ),
    )


class TableSession(TimestampMixin, Base):
    """
    One session code issued for a table.

    Regular tables reuse a session until staff replaces or ends it.
    Terminal sessions are 1:1 with a customer visit. Rows are deactivated,
    never deleted, so old codes keep resolving to "ended".
    """

    __tablename__ = "table_session"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    # No FK: sessions outlive a deleted table
    table_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    session_code: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_seen_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    menu_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    qr_code_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_table_session_table_active", "table_id", "is_active"),
    )


class SessionCustomer(TimestampMixin, Base):
    """Name and phone entered at a terminal, keyed by (table_id, session_code)."""

    __tablename__ = "session_customer"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    table_id: Mapped[str] = mapped_column(String(32), nullable=False)
    session_code: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(15), nullable=False)  # digits only

    __table_args__ = (
        UniqueConstraint("table_id", "session_code", name="uq_session_customer"),
    )

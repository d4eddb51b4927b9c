"""
Shared Pydantic schemas used across the application.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Common Types
# =============================================================================

TableType = Literal["regular", "terminal"]
TableStatus = Literal["available", "occupied", "reserved"]
OrderStatus = Literal["pending", "preparing", "ready", "completed", "archived"]
GuardState = Literal["loading", "allowed", "blocked"]
BlockReason = Literal["no_session", "session_ended"]

Money = Decimal


class ErrorResponse(BaseModel):
    """Standard error body."""

    detail: str | dict


# =============================================================================
# Tables & Sessions (staff)
# =============================================================================


class TableCreate(BaseModel):
    """Register a table or terminal."""

    table_id: str = Field(min_length=1, max_length=32)  # "1", "T-07"
    name: str | None = Field(default=None, max_length=100)
    type: TableType = "regular"
    seats: int | None = Field(default=None, ge=1, le=50)


class TableStatusUpdate(BaseModel):
    status: TableStatus


class TableOutput(BaseModel):
    """Table with session_active derived from the session store."""

    model_config = ConfigDict(from_attributes=True)

    table_id: str
    name: str
    type: TableType
    seats: int | None = None
    status: TableStatus
    session_active: bool
    created_at: datetime | None = None


class SessionStartResponse(BaseModel):
    """session_code is null for terminals: their QR encodes a static entry URL."""

    table_id: str
    table_type: TableType
    session_code: str | None
    menu_url: str
    qr_image: str  # data:image/png;base64,...


class SessionEndResponse(BaseModel):
    table_id: str
    sessions_ended: int


class TableDeleteResponse(BaseModel):
    table_id: str
    deleted: bool = True
    sessions_ended: int = 0


class BulkEndResponse(BaseModel):
    count: int
    table_ids: list[str] = Field(default_factory=list)


# =============================================================================
# Session Guard (customer)
# =============================================================================


class RecoveryActionOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    action: Literal["rescan", "home"]
    label: str
    url: str | None = None


class GuardDecisionOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    state: GuardState
    table_id: str | None = None
    reason: BlockReason | None = None
    message: str | None = None
    recovery: list[RecoveryActionOutput] = Field(default_factory=list)
    recheck_after_seconds: int | None = None


class HeartbeatResponse(BaseModel):
    active: bool


# =============================================================================
# Terminal Entry (public)
# =============================================================================


class TerminalEntryPage(BaseModel):
    """What the static terminal URL resolves to before a visit starts."""

    table_id: str
    name: str
    entry_url: str
    enter_endpoint: str
    fields: list[str] = Field(default_factory=lambda: ["name", "phone"])


class TerminalEntryRequest(BaseModel):
    # Length/format checks happen in the service so errors are reported per field
    name: str = Field(default="", max_length=200)
    phone: str = Field(default="", max_length=40)


class TerminalEntryResponse(BaseModel):
    table_id: str
    session_code: str
    menu_url: str
    customer_name: str


class SessionCustomerOutput(BaseModel):
    """Visitor recorded at terminal entry, as shown to staff."""

    model_config = ConfigDict(from_attributes=True)

    table_id: str
    session_code: str
    name: str
    phone: str
    created_at: datetime | None = None


# =============================================================================
# Cart (customer)
# =============================================================================


class CartItemAdd(BaseModel):
    """Menu item as the client knows it; unit price is snapshotted into the cart."""

    menu_item_id: str = Field(min_length=1, max_length=64)
    item_name: str = Field(min_length=1, max_length=255)
    price: Money = Field(ge=0, max_digits=10, decimal_places=2)
    item_image: str | None = Field(default=None, max_length=2048)


class CartQuantityUpdate(BaseModel):
    quantity: int = Field(ge=0, le=99)  # 0 removes the line


class CartLineOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    menu_item_id: str
    item_name: str
    price: Money
    quantity: int
    item_image: str | None = None
    line_total: Money


class CartOutput(BaseModel):
    table_id: str
    items: list[CartLineOutput]
    total_items: int
    total_price: Money


# =============================================================================
# Orders
# =============================================================================


class OrderItemInput(BaseModel):
    menu_item_id: str = Field(min_length=1, max_length=64)
    item_name: str = Field(min_length=1, max_length=255)
    price: Money = Field(ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(ge=1, le=99)


class OrderItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    menu_item_id: str
    item_name: str
    price: Money
    quantity: int
    line_total: Money


class OrderOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    table_number: str
    status: OrderStatus
    total: Money
    estimated_minutes: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[OrderItemOutput] = Field(default_factory=list)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemsReplace(BaseModel):
    items: list[OrderItemInput] = Field(min_length=1)


# =============================================================================
# Health
# =============================================================================


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded", "unhealthy"]
    service: str
    environment: str
    dependencies: dict[str, dict] | None = None

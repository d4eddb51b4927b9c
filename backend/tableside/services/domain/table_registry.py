"""
Table Registry Domain Service.

Catalog of tables and terminals. session_active is never stored: every view
is recomputed from the currently active sessions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from shared.config.constants import Limits, TableStatus, TableType
from shared.config.logging import get_logger
from shared.utils.validators import validate_table_id
from tableside.repositories import DuplicateRecordError, Persistence, TableRecord

logger = get_logger(__name__)


class UnknownTableError(Exception):
    """Table or terminal does not exist."""

    def __init__(self, table_id: str):
        self.table_id = table_id
        super().__init__(f"Table {table_id} not found")


class DuplicateTableError(Exception):
    """A table with this id already exists."""

    def __init__(self, table_id: str):
        self.table_id = table_id
        super().__init__(f"Table {table_id} already exists")


@dataclass(frozen=True)
class TableView:
    table_id: str
    name: str
    type: str
    seats: int | None
    status: str
    session_active: bool
    created_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.type == TableType.TERMINAL


def _view(table: TableRecord, active_ids: set[str]) -> TableView:
    return TableView(
        table_id=table.table_id,
        name=table.name,
        type=table.type,
        seats=table.seats,
        status=table.status,
        session_active=table.table_id in active_ids,
        created_at=table.created_at,
    )


class TableRegistry:
    """Domain service for the table/terminal catalog."""

    def __init__(self, store: Persistence):
        self._store = store

    def _active_table_ids(self) -> set[str]:
        return {session.table_id for session in self._store.active_sessions()}

    def sync(self) -> list[TableView]:
        """Every table with session_active freshly derived."""
        active_ids = self._active_table_ids()
        return [_view(table, active_ids) for table in self._store.list_tables()]

    def get(self, table_id: str) -> TableView:
        table = self._store.get_table(table_id)
        if table is None:
            raise UnknownTableError(table_id)
        active = bool(self._store.active_sessions(table_id))
        return _view(table, {table_id} if active else set())

    def terminals(self, active_only: bool = False) -> list[TableView]:
        active_ids = self._active_table_ids()
        views = [_view(t, active_ids) for t in self._store.list_tables(TableType.TERMINAL)]
        if active_only:
            views = [v for v in views if v.session_active]
        return views

    def create(
        self,
        table_id: str,
        name: str | None = None,
        table_type: str = TableType.REGULAR,
        seats: int | None = None,
    ) -> TableView:
        """
        Register a table or terminal.

        Raises:
            ValueError: Invalid id, type or seat count
            DuplicateTableError: table_id already registered
        """
        table_id = validate_table_id(table_id)
        if table_type not in TableType.ALL:
            raise ValueError(f"Table type must be one of {TableType.ALL}")

        if table_type == TableType.TERMINAL:
            seats = None
        elif seats is not None and not 1 <= seats <= Limits.MAX_SEATS:
            raise ValueError(f"Seats must be between 1 and {Limits.MAX_SEATS}")

        name = (name or "").strip() or (
            f"Terminal {table_id}" if table_type == TableType.TERMINAL else f"Table {table_id}"
        )
        record = TableRecord(
            table_id=table_id,
            name=name,
            type=table_type,
            seats=seats,
            status=TableStatus.AVAILABLE,
        )
        try:
            stored = self._store.add_table(record)
        except DuplicateRecordError:
            raise DuplicateTableError(table_id)

        logger.info("Table created", table_id=table_id, table_type=table_type)
        return _view(stored, set())

    def set_status(self, table_id: str, status: str) -> TableView:
        """Advisory status; never checked against sessions."""
        if status not in TableStatus.ALL:
            raise ValueError(f"Status must be one of {TableStatus.ALL}")
        updated = self._store.update_table_status(table_id, status)
        if updated is None:
            raise UnknownTableError(table_id)
        return self.get(table_id)

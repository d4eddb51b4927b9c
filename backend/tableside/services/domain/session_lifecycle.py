"""
Session Lifecycle Domain Service.

Owns every transition of a table's session:
- regular tables: staff starts a session, the code is reused by everyone
  scanning the printed QR until staff replaces or ends it
- terminals: the QR encodes a static entry URL and every visit mints a
  fresh code, so one visitor can never see the previous visitor's cart

Ending a terminal deactivates all of its historical sessions; ending a
regular table deactivates only what is currently active. Sessions are never
deleted.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlencode

from shared.config.constants import Limits, TableType
from shared.config.logging import get_logger, mask_phone, mask_session_code
from shared.config.settings import settings
from shared.utils.validators import normalize_phone, phone_search_digits, validate_customer_name
from tableside.repositories import (
    DuplicateRecordError,
    Persistence,
    PersistenceUnavailableError,
    SessionCustomerRecord,
    SessionRecord,
    new_session_code,
    utcnow,
)
from tableside.services.qr import QrRenderer

from .table_registry import UnknownTableError

logger = get_logger(__name__)


class NotATerminalError(Exception):
    """Operation only valid for terminal tables."""

    def __init__(self, table_id: str):
        self.table_id = table_id
        super().__init__(f"Table {table_id} is not a terminal")


class ConfirmationRequired(Exception):
    """Destructive action needs explicit confirmation."""

    def __init__(self, action: str, affected: int = 0):
        self.action = action
        self.affected = affected
        super().__init__(f"Confirmation required to {action}")


class InvalidCustomerInputError(Exception):
    """Terminal entry input rejected; reported next to the offending field."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class UnknownCustomerError(Exception):
    """No visitor was recorded for this terminal visit."""

    def __init__(self, table_id: str, session_code: str):
        self.table_id = table_id
        self.session_code = session_code
        super().__init__(f"No customer for table {table_id} session {mask_session_code(session_code)}")


@dataclass(frozen=True)
class SessionStart:
    """Result of starting a session. session_code is None for terminals."""

    table_id: str
    table_type: str
    session_code: str | None
    menu_url: str
    qr_image: str


@dataclass(frozen=True)
class TerminalEntry:
    table_id: str
    session_code: str
    menu_url: str
    customer_name: str


class SessionLifecycleManager:
    """Domain service for session start/end, terminal visits and liveness checks."""

    def __init__(
        self,
        store: Persistence,
        qr: QrRenderer | None = None,
        base_url: str | None = None,
    ):
        self._store = store
        self._qr = qr or QrRenderer()
        self._base_url = (base_url or settings.public_base_url).rstrip("/")

    # -------------------------------------------------------------------------
    # URLs
    # -------------------------------------------------------------------------

    def menu_url(self, table_id: str, session_code: str) -> str:
        query = urlencode({"table": table_id, "session": session_code})
        return f"{self._base_url}/menu?{query}"

    def terminal_url(self, table_id: str) -> str:
        return f"{self._base_url}/term/{quote(table_id, safe='')}"

    def _require_table(self, table_id: str):
        table = self._store.get_table(table_id)
        if table is None:
            raise UnknownTableError(table_id)
        return table

    # -------------------------------------------------------------------------
    # Start / end
    # -------------------------------------------------------------------------

    def start_session(self, table_id: str) -> SessionStart:
        """
        Start a session for a table.

        Regular tables get a fresh code that replaces any active one.
        Terminals get the static entry URL and no session row.

        Raises:
            UnknownTableError: Table not registered
            PersistenceUnavailableError: Write failed; nothing is reported active
        """
        table = self._require_table(table_id)

        if table.type == TableType.TERMINAL:
            url = self.terminal_url(table_id)
            logger.info("Terminal QR issued", table_id=table_id)
            return SessionStart(
                table_id=table_id,
                table_type=table.type,
                session_code=None,
                menu_url=url,
                qr_image=self._qr.render_data_url(url),
            )

        for attempt in range(1, Limits.SESSION_CODE_ATTEMPTS + 1):
            code = new_session_code(table_id)
            url = self.menu_url(table_id, code)
            qr_image = self._qr.render_data_url(url)
            try:
                session = self._store.start_session(
                    SessionRecord(
                        session_code=code,
                        table_id=table_id,
                        menu_url=url,
                        qr_code_data=qr_image,
                    ),
                    deactivate_prior=True,
                )
            except DuplicateRecordError:
                logger.warning("Session code collision, retrying", table_id=table_id, attempt=attempt)
                continue

            logger.info(
                "Session started",
                table_id=table_id,
                session_code=mask_session_code(session.session_code),
            )
            return SessionStart(
                table_id=table_id,
                table_type=table.type,
                session_code=session.session_code,
                menu_url=url,
                qr_image=qr_image,
            )

        raise DuplicateRecordError("could not generate a unique session code")

    def end_session(self, table_id: str, all_historical: bool | None = None) -> int:
        """
        Deactivate a table's sessions. Idempotent: a second call changes 0 rows.

        all_historical defaults to True for terminals and False for regular
        tables. Sessions of a table that no longer exists can still be ended.
        """
        if all_historical is None:
            table = self._store.get_table(table_id)
            all_historical = table is not None and table.type == TableType.TERMINAL

        changed = self._store.deactivate_sessions(
            table_id,
            only_active=not all_historical,
            ended_at=utcnow(),
        )
        logger.info(
            "Session ended",
            table_id=table_id,
            all_historical=all_historical,
            sessions_changed=changed,
        )
        return changed

    def is_table_active(self, table_id: str) -> bool:
        return bool(self._store.active_sessions(table_id))

    def delete_table(self, table_id: str, confirmed: bool = False) -> int:
        """
        Remove a table record, ending its sessions first.

        A terminal with a live session needs confirmed=True. Returns the
        number of sessions ended.
        """
        table = self._require_table(table_id)
        is_terminal = table.type == TableType.TERMINAL
        ended = 0

        if self.is_table_active(table_id):
            if is_terminal and not confirmed:
                raise ConfirmationRequired(f"delete terminal {table_id} with a live session", affected=1)
            ended = self.end_session(table_id, all_historical=is_terminal)

        self._store.delete_table(table_id)
        logger.info("Table deleted", table_id=table_id, sessions_ended=ended)
        return ended

    def bulk_end_all_terminal_sessions(self, confirmed: bool = False) -> list[str]:
        """
        End every terminal that currently has a live session.

        Returns the ids of the terminals ended (its length is the count).
        Nothing active is a no-op success and needs no confirmation.
        """
        active_ids = {s.table_id for s in self._store.active_sessions()}
        targets = [
            t.table_id
            for t in self._store.list_tables(TableType.TERMINAL)
            if t.table_id in active_ids
        ]
        if not targets:
            return []
        if not confirmed:
            raise ConfirmationRequired("end all terminal sessions", affected=len(targets))

        for table_id in targets:
            self.end_session(table_id, all_historical=True)

        logger.info("All terminal sessions ended", count=len(targets), table_ids=targets)
        return targets

    # -------------------------------------------------------------------------
    # Liveness
    # -------------------------------------------------------------------------

    def check_active(self, session_code: str | None, table_id: str | None = None) -> bool:
        """
        True only for an existing, active session (of table_id, when given).

        Fails closed: an unreachable backend answers False.
        """
        if not session_code:
            return False
        try:
            session = self._store.find_session(session_code)
        except PersistenceUnavailableError as e:
            logger.warning(
                "Session check failed, denying access",
                session_code=mask_session_code(session_code),
                error=str(e),
            )
            return False

        if session is None or not session.is_active:
            return False
        if table_id is not None and session.table_id != table_id:
            logger.warning(
                "Session code used with another table",
                table_id=table_id,
                session_code=mask_session_code(session_code),
            )
            return False
        return True

    def touch_session(self, session_code: str, table_id: str | None = None) -> bool:
        """
        Heartbeat: record last_seen_at. Returns whether the session is active.

        A code presented with another table is treated like an inactive one,
        the same way check_active treats it.
        """
        return self._store.touch_session(session_code, utcnow(), table_id=table_id)

    # -------------------------------------------------------------------------
    # Terminal visits
    # -------------------------------------------------------------------------

    def mint_terminal_session(self, table_id: str) -> str:
        table = self._require_table(table_id)
        if table.type != TableType.TERMINAL:
            raise NotATerminalError(table_id)
        session = self._store.mint_session(table_id)
        logger.info(
            "Terminal session minted",
            table_id=table_id,
            session_code=mask_session_code(session.session_code),
        )
        return session.session_code

    def enter_terminal(self, table_id: str, name: str | None, phone: str | None) -> TerminalEntry:
        """
        Terminal entry: validate the visitor, mint a session, remember who it is.

        Raises:
            InvalidCustomerInputError: name or phone rejected (nothing is minted)
        """
        try:
            clean_name = validate_customer_name(name)
        except ValueError as e:
            raise InvalidCustomerInputError("name", str(e))
        try:
            clean_phone = normalize_phone(phone)
        except ValueError as e:
            raise InvalidCustomerInputError("phone", str(e))

        code = self.mint_terminal_session(table_id)
        self._store.save_session_customer(
            SessionCustomerRecord(
                table_id=table_id,
                session_code=code,
                name=clean_name,
                phone=clean_phone,
            )
        )
        logger.info(
            "Terminal visit started",
            table_id=table_id,
            session_code=mask_session_code(code),
            phone=mask_phone(clean_phone),
        )
        return TerminalEntry(
            table_id=table_id,
            session_code=code,
            menu_url=self.menu_url(table_id, code),
            customer_name=clean_name,
        )

    # -------------------------------------------------------------------------
    # Terminal customers (staff lookup)
    # -------------------------------------------------------------------------

    def get_customer(self, table_id: str, session_code: str) -> SessionCustomerRecord:
        customer = self._store.get_session_customer(table_id, session_code)
        if customer is None:
            raise UnknownCustomerError(table_id, session_code)
        return customer

    def find_customers(
        self,
        phone: str | None = None,
        session_code: str | None = None,
    ) -> list[SessionCustomerRecord]:
        """
        Terminal visitors newest first, optionally narrowed down.

        Args:
            phone: Full or partial phone; formatting characters are ignored
            session_code: Exact session code of one visit

        Raises:
            InvalidCustomerInputError: phone has no digits or too many
        """
        digits = None
        if phone is not None:
            try:
                digits = phone_search_digits(phone)
            except ValueError as e:
                raise InvalidCustomerInputError("phone", str(e))
        return self._store.list_session_customers(phone_digits=digits, session_code=session_code)

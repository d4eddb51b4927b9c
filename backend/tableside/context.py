"""
Request-scoped customer context.

The (table, session) pair arrives as the "table" and "session" query
parameters of every customer URL. It is parsed once here and passed
explicitly to the guard, the cart store and the order manager.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Query

from tableside.repositories.records import derive_cart_session_id


@dataclass(frozen=True)
class RequestContext:
    table_id: str | None
    session_code: str | None

    @property
    def has_session(self) -> bool:
        return bool(self.table_id and self.session_code)

    @property
    def cart_session_id(self) -> str:
        """Cart scope key for this visit."""
        if not self.has_session:
            raise ValueError("cart scope requires both table and session")
        return derive_cart_session_id(self.table_id, self.session_code)


def get_request_context(
    table: str | None = Query(default=None, max_length=32),
    session: str | None = Query(default=None, max_length=128),
) -> RequestContext:
    """FastAPI dependency: parse ?table=&session= into a RequestContext."""
    table = (table or "").strip() or None
    session = (session or "").strip() or None
    return RequestContext(table_id=table, session_code=session)

"""Dialect-aware ``INSERT ... ON CONFLICT`` construction."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import case
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql.elements import ColumnElement

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def upsert_insert(db: AsyncSession, table: Any) -> Any:  # noqa: ANN401
    """Return an ``insert(table)`` that supports ``on_conflict_do_update``.

    Raises:
        NotImplementedError: If the session is bound to another dialect.
    """
    dialect = db.get_bind().dialect.name
    try:
        insert = _INSERTS[dialect]
    except KeyError:
        msg = f"Upsert is not supported on dialect {dialect!r}"
        raise NotImplementedError(msg) from None
    return insert(table)


def greatest(current: ColumnElement[Any], incoming: ColumnElement[Any]) -> ColumnElement[Any]:
    """Portable two-argument GREATEST()."""
    return case((current >= incoming, current), else_=incoming)

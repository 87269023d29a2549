from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..common.datetime_utils import require_aware
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def db_transaction(conn_factory: DatabaseConnection, *, isolation_level: str = "SERIALIZABLE"):
    """One explicit transaction on a dedicated connection.

    Commits when the block exits normally, rolls back on any exception.
    """

    conn = conn_factory.connect()
    try:
        conn.start_transaction(isolation_level=isolation_level)
        cur = conn.cursor(dictionary=True)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def bound_cursor(conn_factory: DatabaseConnection, cur=None):
    """Reuse ``cur`` when a repository is bound to a transaction, else open one."""

    if cur is not None:
        yield cur
        return
    with db_cursor(conn_factory) as (_, own_cur):
        yield own_cur


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Aware instant -> naive UTC for DATETIME columns."""

    if value is None:
        return None
    return require_aware(value).astimezone(timezone.utc).replace(tzinfo=None)


def from_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC DATETIME -> aware UTC instant."""

    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value.replace(tzinfo=timezone.utc)

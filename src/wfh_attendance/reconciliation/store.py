from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import ContextManager, Iterator, Protocol

from ..attendance.mysql_attendance_repository import MySQLAttendanceRepository
from ..attendance.repository import AttendanceRepository
from ..core.exceptions import ReconciliationLockTimeout
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_transaction, fetchone
from ..wfh.mysql_wfh_repository import MySQLWFHRequestRepository
from ..wfh.repository import WFHRequestRepository


@dataclass(frozen=True)
class ReconciliationUnit:
    """Repositories bound to one open per-row transaction."""

    attendance: AttendanceRepository
    wfh: WFHRequestRepository


class ReconciliationStore(Protocol):
    @property
    def attendance(self) -> AttendanceRepository:
        raise NotImplementedError

    @property
    def wfh(self) -> WFHRequestRepository:
        raise NotImplementedError

    def row_transaction(self, *, user_id: int, day: date) -> ContextManager[ReconciliationUnit]:
        """Serializable unit of work for one (user, day).

        Commits on normal exit, rolls back when the block raises.
        """

        raise NotImplementedError


class MySQLReconciliationStore(ReconciliationStore):
    def __init__(
        self,
        conn_factory: DatabaseConnection,
        attendance: MySQLAttendanceRepository,
        wfh: MySQLWFHRequestRepository,
        *,
        lock_timeout_seconds: int = 10,
    ):
        self._conn_factory = conn_factory
        self._attendance = attendance
        self._wfh = wfh
        self._lock_timeout = int(lock_timeout_seconds)

    @property
    def attendance(self) -> MySQLAttendanceRepository:
        return self._attendance

    @property
    def wfh(self) -> MySQLWFHRequestRepository:
        return self._wfh

    @staticmethod
    def lock_name(user_id: int, day: date) -> str:
        return f"wfh-reconcile:{int(user_id)}:{day.isoformat()}"

    @contextmanager
    def row_transaction(self, *, user_id: int, day: date) -> Iterator[ReconciliationUnit]:
        name = self.lock_name(user_id, day)
        with db_transaction(self._conn_factory, isolation_level="SERIALIZABLE") as (_, cur):
            # Named lock lives until the connection closes, i.e. after commit/rollback.
            cur.execute("SELECT GET_LOCK(%s, %s) AS acquired", (name, self._lock_timeout))
            row = fetchone(cur)
            if not row or int(row["acquired"] or 0) != 1:
                raise ReconciliationLockTimeout(f"Timed out waiting for lock {name}")
            yield ReconciliationUnit(
                attendance=self._attendance.bound_to(cur),
                wfh=self._wfh.bound_to(cur),
            )

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from mysql.connector import errors as mysql_errors

from ..common.datetime_utils import DayWindow
from ..core.constants import MYSQL_DUPLICATE_ENTRY
from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateAttendanceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import bound_cursor, fetchone, from_db_datetime, to_db_datetime
from .model import AttendanceRecord
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, cursor=None):
        self._conn_factory = conn_factory
        self._cur = cursor

    def bound_to(self, cursor) -> "MySQLAttendanceRepository":
        """Same repository running its statements on an open transaction cursor."""
        return MySQLAttendanceRepository(self._conn_factory, cursor=cursor)

    @staticmethod
    def _to_model(r: dict) -> AttendanceRecord:
        return AttendanceRecord(
            attendance_id=int(r["attendance_id"]),
            user_id=int(r["user_id"]),
            work_date=r["work_date"],
            check_in_time=from_db_datetime(r["check_in_time"]),
            check_out_time=from_db_datetime(r.get("check_out_time")),
            status=AttendanceStatus(r["status"]),
            note=r.get("note"),
        )

    def find_for_user_in_window(self, user_id: int, window: DayWindow) -> Optional[AttendanceRecord]:
        with bound_cursor(self._conn_factory, self._cur) as cur:
            cur.execute(
                """
                SELECT attendance_id, user_id, work_date, check_in_time, check_out_time, status, note
                FROM attendance_records
                WHERE user_id=%s AND check_in_time >= %s AND check_in_time < %s
                ORDER BY check_in_time ASC
                LIMIT 1
                """,
                (int(user_id), to_db_datetime(window.start), to_db_datetime(window.end)),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def create_record(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> int:
        with bound_cursor(self._conn_factory, self._cur) as cur:
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_records(user_id, work_date, check_in_time, status, note)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(user_id), work_date, to_db_datetime(check_in_time), status.value, note),
                )
            except mysql_errors.IntegrityError as exc:
                if exc.errno == MYSQL_DUPLICATE_ENTRY:
                    raise DuplicateAttendanceError(user_id, work_date) from exc
                raise
            return int(cur.lastrowid)

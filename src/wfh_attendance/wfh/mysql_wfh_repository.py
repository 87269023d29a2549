from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Sequence

from ..common.datetime_utils import DayWindow
from ..core.enums import WFHStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import bound_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import WFHRequest
from .repository import WFHRequestRepository

_COLUMNS = """
    request_id, user_id, log_time, status, activity_description, screenshot_url,
    latitude, longitude, admin_notes, created_at
"""


class MySQLWFHRequestRepository(WFHRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, cursor=None):
        self._conn_factory = conn_factory
        self._cur = cursor

    def bound_to(self, cursor) -> "MySQLWFHRequestRepository":
        return MySQLWFHRequestRepository(self._conn_factory, cursor=cursor)

    @staticmethod
    def _to_model(r: dict) -> WFHRequest:
        return WFHRequest(
            request_id=int(r["request_id"]),
            user_id=int(r["user_id"]),
            log_time=from_db_datetime(r["log_time"]),
            status=WFHStatus(r["status"]),
            activity_description=r.get("activity_description"),
            screenshot_url=r.get("screenshot_url"),
            latitude=float(r["latitude"]) if r.get("latitude") is not None else None,
            longitude=float(r["longitude"]) if r.get("longitude") is not None else None,
            admin_notes=r.get("admin_notes"),
            created_at=from_db_datetime(r.get("created_at")),
        )

    def list_expired_pending(self, *, before: datetime, user_id: Optional[int] = None) -> Sequence[WFHRequest]:
        clauses = ["status=%s", "log_time < %s"]
        params: list[object] = [WFHStatus.PENDING.value, to_db_datetime(before)]

        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with bound_cursor(self._conn_factory, self._cur) as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM wfh_requests
                WHERE {where}
                ORDER BY log_time ASC, request_id ASC
                """,
                tuple(params),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def get_for_update(self, request_id: int) -> Optional[WFHRequest]:
        # FOR UPDATE only locks when a transaction is open; outside one it is a plain read.
        with bound_cursor(self._conn_factory, self._cur) as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM wfh_requests
                WHERE request_id=%s
                FOR UPDATE
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def mark_rejected(self, *, request_id: int, admin_notes: str) -> bool:
        with bound_cursor(self._conn_factory, self._cur) as cur:
            cur.execute(
                """
                UPDATE wfh_requests
                SET status=%s, admin_notes=%s
                WHERE request_id=%s AND status=%s
                """,
                (WFHStatus.REJECTED.value, admin_notes, int(request_id), WFHStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def count_by_status(self, *, before: datetime) -> Dict[WFHStatus, int]:
        with bound_cursor(self._conn_factory, self._cur) as cur:
            cur.execute(
                """
                SELECT status, COUNT(*) AS total
                FROM wfh_requests
                WHERE log_time < %s
                GROUP BY status
                """,
                (to_db_datetime(before),),
            )
            return {WFHStatus(r["status"]): int(r["total"]) for r in fetchall(cur)}

    def find_active_in_window(self, user_id: int, window: DayWindow) -> Optional[WFHRequest]:
        with bound_cursor(self._conn_factory, self._cur) as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM wfh_requests
                WHERE user_id=%s AND status IN (%s, %s)
                  AND log_time >= %s AND log_time < %s
                ORDER BY log_time DESC
                LIMIT 1
                """,
                (
                    int(user_id),
                    WFHStatus.PENDING.value,
                    WFHStatus.APPROVED.value,
                    to_db_datetime(window.start),
                    to_db_datetime(window.end),
                ),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def list_pending(self, *, limit: int = 200) -> Sequence[WFHRequest]:
        with bound_cursor(self._conn_factory, self._cur) as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM wfh_requests
                WHERE status=%s
                ORDER BY log_time ASC
                LIMIT %s
                """,
                (WFHStatus.PENDING.value, int(limit)),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def list_recent(self, *, limit: int = 10) -> Sequence[WFHRequest]:
        with bound_cursor(self._conn_factory, self._cur) as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM wfh_requests
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [self._to_model(r) for r in fetchall(cur)]

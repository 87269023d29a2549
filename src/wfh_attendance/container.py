from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .checkin.service import CheckInService
from .common.datetime_utils import DayPolicy
from .core.constants import DEFAULT_BUSINESS_TIMEZONE, DEFAULT_WORK_START_HOUR
from .database.connection import DBConfig, DatabaseConnection
from .reconciliation.service import WFHReconciliationService
from .reconciliation.store import MySQLReconciliationStore
from .wfh.mysql_wfh_repository import MySQLWFHRequestRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    day_policy: DayPolicy

    attendance_repo: MySQLAttendanceRepository
    wfh_repo: MySQLWFHRequestRepository
    reconciliation_store: MySQLReconciliationStore

    reconciliation_service: WFHReconciliationService
    checkin_service: CheckInService


def build_container(
    *,
    db_config: dict,
    business_timezone: str = DEFAULT_BUSINESS_TIMEZONE,
    work_start_hour: int = DEFAULT_WORK_START_HOUR,
    lock_timeout_seconds: Optional[int] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    day_policy = DayPolicy(business_timezone)

    attendance_repo = MySQLAttendanceRepository(conn)
    wfh_repo = MySQLWFHRequestRepository(conn)
    store = MySQLReconciliationStore(
        conn,
        attendance_repo,
        wfh_repo,
        lock_timeout_seconds=10 if lock_timeout_seconds is None else lock_timeout_seconds,
    )

    reconciliation_service = WFHReconciliationService(store, day_policy=day_policy)
    checkin_service = CheckInService(
        attendance_repo,
        wfh_repo,
        reconciliation_service,
        day_policy=day_policy,
        work_start_hour=work_start_hour,
    )

    return Container(
        conn=conn,
        day_policy=day_policy,
        attendance_repo=attendance_repo,
        wfh_repo=wfh_repo,
        reconciliation_store=store,
        reconciliation_service=reconciliation_service,
        checkin_service=checkin_service,
    )


def build_container_from_settings(settings) -> Container:
    return build_container(
        db_config=dict(settings.DB_CONFIG),
        business_timezone=getattr(settings, "BUSINESS_TIMEZONE", DEFAULT_BUSINESS_TIMEZONE),
        work_start_hour=int(getattr(settings, "WORK_START_HOUR", DEFAULT_WORK_START_HOUR)),
        lock_timeout_seconds=getattr(settings, "RECONCILE_LOCK_TIMEOUT", None),
    )

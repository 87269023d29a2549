from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Callable, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import DayPolicy, now_utc
from ..core.constants import DEFAULT_WORK_START_HOUR
from ..core.enums import AttendanceStatus, WFHStatus
from ..core.exceptions import CheckInRetryableError, DuplicateAttendanceError, ValidationError
from ..reconciliation.service import WFHReconciliationService
from ..wfh.repository import WFHRequestRepository

logger = logging.getLogger(__name__)


class CheckInService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        wfh: WFHRequestRepository,
        reconciliation: WFHReconciliationService,
        *,
        day_policy: DayPolicy,
        work_start_hour: int = DEFAULT_WORK_START_HOUR,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._wfh = wfh
        self._reconciliation = reconciliation
        self._days = day_policy
        self._work_start = time(hour=int(work_start_hour))
        self._clock = clock

    def _status_for(self, now: datetime) -> AttendanceStatus:
        return AttendanceStatus.PRESENT if self._days.local_time(now) <= self._work_start else AttendanceStatus.LATE

    def check_in(self, user_id: int, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or self._clock()
        user_id = int(user_id)

        # Stale WFH declarations from earlier days must be settled first.
        outcome = self._reconciliation.reconcile_for_user(user_id, now=now)
        if not outcome.ok:
            logger.warning("Check-in for user %s blocked by unresolved WFH state: %s", user_id, outcome.errors)
            raise CheckInRetryableError(user_id, outcome.errors)

        window = self._days.window_for(now)

        if self._attendance.find_for_user_in_window(user_id, window):
            raise ValidationError("You have already checked in today")

        wfh = self._wfh.find_active_in_window(user_id, window)
        if wfh is not None:
            if wfh.status == WFHStatus.APPROVED:
                raise ValidationError("You are working from home today (approved)")
            raise ValidationError("You have a pending WFH request for today")

        status = self._status_for(now)
        try:
            attendance_id = self._attendance.create_record(
                user_id=user_id,
                work_date=window.day,
                check_in_time=now,
                status=status,
            )
        except DuplicateAttendanceError as exc:
            raise ValidationError("You have already checked in today") from exc

        logger.info("User %s checked in at %s (%s)", user_id, now.isoformat(), status.value)
        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            work_date=window.day,
            check_in_time=now,
            check_out_time=None,
            status=status,
        )

    def today_status(self, user_id: int, *, now: Optional[datetime] = None) -> dict:
        """Today's attendance and active WFH declaration for a user."""
        now = now or self._clock()
        window = self._days.window_for(now)

        attendance = self._attendance.find_for_user_in_window(int(user_id), window)
        wfh = self._wfh.find_active_in_window(int(user_id), window)
        return {
            "date": window.day.isoformat(),
            "attendance": attendance.to_dict() if attendance else None,
            "wfhLog": wfh.to_dict() if wfh else None,
            "hasAttendance": attendance is not None,
            "hasWFH": wfh is not None,
        }

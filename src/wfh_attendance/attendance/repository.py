from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from ..common.datetime_utils import DayWindow
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def find_for_user_in_window(self, user_id: int, window: DayWindow) -> Optional[AttendanceRecord]:
        """Any record of the user whose check-in falls inside ``window``."""

        raise NotImplementedError

    def create_record(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> int:
        """Insert a record and return its id.

        Raises DuplicateAttendanceError when (user_id, work_date) already exists.
        """

        raise NotImplementedError

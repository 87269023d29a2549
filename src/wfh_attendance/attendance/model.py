from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the attendance outcome of one user on one business day."""

    attendance_id: int
    user_id: int
    work_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "workDate": self.work_date.isoformat(),
            "checkInTime": self.check_in_time.isoformat(),
            "checkOutTime": self.check_out_time.isoformat() if self.check_out_time else None,
            "status": self.status.value,
            "notes": self.note,
        }

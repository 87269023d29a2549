from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..core.enums import WFHStatus


@dataclass(frozen=True)
class WFHRequest:
    """A user's remote-work declaration for the day of ``log_time``.

    Description, screenshot and coordinates are submission metadata; the
    reconciliation flow carries them through untouched.
    """

    request_id: int
    user_id: int
    log_time: datetime
    status: WFHStatus
    activity_description: Optional[str] = None
    screenshot_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == WFHStatus.PENDING

    def with_decision(self, status: WFHStatus, admin_notes: Optional[str]) -> "WFHRequest":
        return replace(self, status=status, admin_notes=admin_notes)

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "userId": self.user_id,
            "logTime": self.log_time.isoformat(),
            "status": self.status.value,
            "activityDescription": self.activity_description,
            "screenshotUrl": self.screenshot_url,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "adminNotes": self.admin_notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

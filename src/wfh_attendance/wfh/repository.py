from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Protocol, Sequence

from ..common.datetime_utils import DayWindow
from ..core.enums import WFHStatus
from .model import WFHRequest


class WFHRequestRepository(Protocol):
    def list_expired_pending(self, *, before: datetime, user_id: Optional[int] = None) -> Sequence[WFHRequest]:
        """PENDING rows with ``log_time < before``, oldest first."""

        raise NotImplementedError

    def get_for_update(self, request_id: int) -> Optional[WFHRequest]:
        """Read one row, locking it when running inside a transaction."""

        raise NotImplementedError

    def mark_rejected(self, *, request_id: int, admin_notes: str) -> bool:
        """PENDING -> REJECTED. Returns False when the row is no longer PENDING."""

        raise NotImplementedError

    def count_by_status(self, *, before: datetime) -> Dict[WFHStatus, int]:
        """Row counts grouped by status for rows with ``log_time < before``."""

        raise NotImplementedError

    def find_active_in_window(self, user_id: int, window: DayWindow) -> Optional[WFHRequest]:
        """The user's PENDING or APPROVED request logged inside ``window``."""

        raise NotImplementedError

    def list_pending(self, *, limit: int = 200) -> Sequence[WFHRequest]:
        raise NotImplementedError

    def list_recent(self, *, limit: int = 10) -> Sequence[WFHRequest]:
        raise NotImplementedError

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class RowOutcome(str, Enum):
    REJECTED = "REJECTED"
    REJECTED_WITH_ABSENCE = "REJECTED_WITH_ABSENCE"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class RejectionReason:
    """Note templates written when an expired request is resolved.

    ``{date}`` is replaced with the request's display date.
    """

    attendance_note: str
    admin_notes: str

    def render_attendance_note(self, display_date: str) -> str:
        return self.attendance_note.format(date=display_date)

    def render_admin_notes(self, display_date: str) -> str:
        return self.admin_notes.format(date=display_date)


AUTO_EXPIRY = RejectionReason(
    attendance_note="Absent - WFH request expired (was pending for {date})",
    admin_notes="Auto-rejected: Request expired (not processed within the day). Original request date: {date}",
)

ADMIN_BULK_REJECT = RejectionReason(
    attendance_note="Absent - WFH request expired (bulk rejected by admin)",
    admin_notes="Bulk rejected by admin - request expired (original date: {date})",
)


@dataclass
class ReconciliationResult:
    """Aggregated outcome of one reconciliation run.

    ``processed_count`` counts requests this run moved to REJECTED.
    ``skipped_count`` counts rows another actor resolved first.
    """

    processed_count: int = 0
    absent_records_created: int = 0
    skipped_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def record(self, outcome: RowOutcome) -> None:
        if outcome == RowOutcome.SKIPPED:
            self.skipped_count += 1
            return
        self.processed_count += 1
        if outcome == RowOutcome.REJECTED_WITH_ABSENCE:
            self.absent_records_created += 1

    def to_dict(self) -> dict:
        return {
            "processedCount": self.processed_count,
            "absentRecordsCreated": self.absent_records_created,
            "skippedCount": self.skipped_count,
            "errorsCount": len(self.errors),
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class PendingStats:
    expired_pending_count: int
    total_expired_requests: int
    as_of: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "expiredPendingCount": self.expired_pending_count,
            "totalExpiredRequests": self.total_expired_requests,
            "asOf": self.as_of.isoformat() if self.as_of else None,
        }

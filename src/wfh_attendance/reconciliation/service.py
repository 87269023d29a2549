from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import DayPolicy, format_display_date, now_utc
from ..core.constants import DEFAULT_LIST_LIMIT, DEFAULT_RECENT_REQUESTS_LIMIT
from ..core.enums import AttendanceStatus, WFHStatus
from ..core.exceptions import DuplicateAttendanceError, StaleRequestError
from ..wfh.model import WFHRequest
from .model import (
    ADMIN_BULK_REJECT,
    AUTO_EXPIRY,
    PendingStats,
    ReconciliationResult,
    RejectionReason,
    RowOutcome,
)
from .store import ReconciliationStore

logger = logging.getLogger(__name__)


class WFHReconciliationService:
    """Resolves WFH requests left PENDING past their intended day.

    Each expired request is rejected and, when the user has no attendance for
    that day, an ABSENT record is synthesized. Safe to re-run and to call
    concurrently from the scheduled sweep and from check-in: every row is
    handled in its own (user, day) transaction and the store rejects a second
    attendance record for the same day.
    """

    def __init__(
        self,
        store: ReconciliationStore,
        *,
        day_policy: DayPolicy,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._store = store
        self._days = day_policy
        self._clock = clock

    def reconcile_all(self, *, now: Optional[datetime] = None) -> ReconciliationResult:
        """Process every expired PENDING request. Never raises."""
        return self._reconcile(now=now, user_id=None, reason=AUTO_EXPIRY)

    def reconcile_for_user(self, user_id: int, *, now: Optional[datetime] = None) -> ReconciliationResult:
        """Process one user's expired PENDING requests. Never raises.

        When the result has no errors the user has no PENDING request left
        for any day before today.
        """
        return self._reconcile(now=now, user_id=user_id, reason=AUTO_EXPIRY)

    def bulk_reject_expired(self, *, admin_user_id: int, now: Optional[datetime] = None) -> ReconciliationResult:
        logger.info("Bulk rejection of expired WFH requests requested by admin %s", admin_user_id)
        return self._reconcile(now=now, user_id=None, reason=ADMIN_BULK_REJECT)

    def get_pending_stats(self, *, now: Optional[datetime] = None) -> PendingStats:
        now = now or self._clock()
        counts = self._store.wfh.count_by_status(before=self._days.today_start(now))
        return PendingStats(
            expired_pending_count=counts.get(WFHStatus.PENDING, 0),
            total_expired_requests=sum(counts.values()),
            as_of=self._days.today(now),
        )

    def list_expired_pending(
        self, *, now: Optional[datetime] = None, user_id: Optional[int] = None
    ) -> Sequence[WFHRequest]:
        now = now or self._clock()
        return self._store.wfh.list_expired_pending(before=self._days.today_start(now), user_id=user_id)

    def get_dashboard(self, *, now: Optional[datetime] = None, recent_limit: int = DEFAULT_RECENT_REQUESTS_LIMIT) -> dict:
        now = now or self._clock()
        return {
            "statistics": self.get_pending_stats(now=now).to_dict(),
            "recentRequests": [r.to_dict() for r in self._store.wfh.list_recent(limit=recent_limit)],
            "pendingRequests": [r.to_dict() for r in self._store.wfh.list_pending(limit=DEFAULT_LIST_LIMIT)],
            "expiredPendingRequests": [r.to_dict() for r in self.list_expired_pending(now=now)],
        }

    def _reconcile(self, *, now: Optional[datetime], user_id, reason: RejectionReason) -> ReconciliationResult:
        result = ReconciliationResult()

        try:
            if user_id is not None:
                user_id = int(user_id)
            now = now or self._clock()
            cutoff = self._days.today_start(now)
            expired = self._store.wfh.list_expired_pending(before=cutoff, user_id=user_id)
        except Exception as exc:
            if user_id is None:
                message = f"Fatal error in WFH cleanup process: {exc}"
            else:
                message = f"Error in user WFH cleanup process: {exc}"
            logger.exception(message)
            result.errors.append(message)
            return result

        if user_id is None:
            logger.info("Found %d expired pending WFH requests", len(expired))
        elif expired:
            logger.info("Found %d expired pending WFH requests for user %s", len(expired), user_id)

        for request in expired:
            try:
                outcome = self._reconcile_one(request, reason)
            except Exception as exc:
                message = f"Error processing WFH request {request.request_id} for user {request.user_id}: {exc}"
                logger.exception(message)
                result.errors.append(message)
                continue
            result.record(outcome)

        if user_id is None or expired:
            logger.info(
                "WFH cleanup completed. Processed: %d, Absent records created: %d, Skipped: %d, Errors: %d",
                result.processed_count,
                result.absent_records_created,
                result.skipped_count,
                len(result.errors),
            )
        return result

    def _reconcile_one(self, request: WFHRequest, reason: RejectionReason) -> RowOutcome:
        window = self._days.window_for(request.log_time)
        display_date = format_display_date(window.day)

        with self._store.row_transaction(user_id=request.user_id, day=window.day) as unit:
            current = unit.wfh.get_for_update(request.request_id)
            if current is None or not current.is_pending:
                logger.info("WFH request %s already resolved, skipping", request.request_id)
                return RowOutcome.SKIPPED

            created = False
            if unit.attendance.find_for_user_in_window(request.user_id, window) is None:
                try:
                    unit.attendance.create_record(
                        user_id=request.user_id,
                        work_date=window.day,
                        check_in_time=window.start,
                        status=AttendanceStatus.ABSENT,
                        note=reason.render_attendance_note(display_date),
                    )
                    created = True
                except DuplicateAttendanceError:
                    logger.info(
                        "Attendance for user %s on %s was recorded concurrently, not creating absence",
                        request.user_id,
                        window.day,
                    )

            if not unit.wfh.mark_rejected(
                request_id=request.request_id,
                admin_notes=reason.render_admin_notes(display_date),
            ):
                raise StaleRequestError(f"WFH request {request.request_id} left PENDING while being reconciled")

        logger.info(
            "Processed expired WFH request %s for user %s for date %s",
            request.request_id,
            request.user_id,
            display_date,
        )
        return RowOutcome.REJECTED_WITH_ABSENCE if created else RowOutcome.REJECTED

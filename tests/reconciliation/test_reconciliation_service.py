from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from fakes import InMemoryAttendance, InMemoryStore, InMemoryWFH, jakarta
from wfh_attendance.common.datetime_utils import DayPolicy
from wfh_attendance.core.enums import AttendanceStatus, WFHStatus
from wfh_attendance.core.exceptions import DuplicateAttendanceError
from wfh_attendance.reconciliation.service import WFHReconciliationService

YESTERDAY = date(2026, 2, 9)


def test_stale_pending_request_is_rejected_and_absence_created(store, service, fixed_now):
    rid = store.wfh.add(user_id=7, log_time=jakarta(2026, 2, 9, 9, 0))

    result = service.reconcile_all(now=fixed_now)

    assert result.processed_count == 1
    assert result.absent_records_created == 1
    assert result.errors == []

    req = store.wfh.get(rid)
    assert req.status == WFHStatus.REJECTED
    assert "expired" in req.admin_notes
    assert "Mon Feb 09 2026" in req.admin_notes

    records = store.attendance.for_user(7)
    assert len(records) == 1
    absent = records[0]
    assert absent.status == AttendanceStatus.ABSENT
    assert absent.work_date == YESTERDAY
    # Synthesized records check in at the business day start.
    assert absent.check_in_time == datetime(2026, 2, 8, 17, 0, tzinfo=timezone.utc)
    assert absent.note == "Absent - WFH request expired (was pending for Mon Feb 09 2026)"


def test_same_day_request_is_left_pending(store, service, fixed_now):
    rid = store.wfh.add(user_id=7, log_time=jakarta(2026, 2, 10, 8, 0))

    result = service.reconcile_all(now=fixed_now)

    assert result.processed_count == 0
    assert result.absent_records_created == 0
    assert store.wfh.get(rid).status == WFHStatus.PENDING
    assert store.attendance.for_user(7) == []


def test_existing_attendance_is_not_touched(store, service, fixed_now):
    store.attendance.add(
        user_id=7,
        work_date=YESTERDAY,
        check_in_time=jakarta(2026, 2, 9, 8, 55),
        status=AttendanceStatus.PRESENT,
    )
    rid = store.wfh.add(user_id=7, log_time=jakarta(2026, 2, 9, 13, 0))

    result = service.reconcile_all(now=fixed_now)

    assert result.processed_count == 1
    assert result.absent_records_created == 0
    assert store.wfh.get(rid).status == WFHStatus.REJECTED

    records = store.attendance.for_user(7)
    assert len(records) == 1
    assert records[0].status == AttendanceStatus.PRESENT
    assert records[0].note is None


def test_second_run_is_a_no_op(store, service, fixed_now):
    store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))
    store.wfh.add(user_id=2, log_time=jakarta(2026, 2, 7, 11, 0))

    first = service.reconcile_all(now=fixed_now)
    second = service.reconcile_all(now=fixed_now)

    assert (first.processed_count, first.absent_records_created) == (2, 2)
    assert (second.processed_count, second.absent_records_created) == (0, 0)
    assert second.errors == []
    assert len(store.attendance.all()) == 2


def test_two_requests_same_user_same_day_create_one_absence(store, service, fixed_now):
    first = store.wfh.add(user_id=3, log_time=jakarta(2026, 2, 9, 8, 0))
    second = store.wfh.add(user_id=3, log_time=jakarta(2026, 2, 9, 15, 0))

    result = service.reconcile_all(now=fixed_now)

    assert result.processed_count == 2
    assert result.absent_records_created == 1
    assert store.wfh.get(first).status == WFHStatus.REJECTED
    assert store.wfh.get(second).status == WFHStatus.REJECTED
    assert len(store.attendance.for_user(3)) == 1


def test_non_pending_rows_are_never_revisited(store, service, fixed_now):
    approved = store.wfh.add(user_id=4, log_time=jakarta(2026, 2, 8, 9, 0), status=WFHStatus.APPROVED)
    rejected = store.wfh.add(
        user_id=4, log_time=jakarta(2026, 2, 7, 9, 0), status=WFHStatus.REJECTED, admin_notes="no evidence"
    )

    result = service.reconcile_all(now=fixed_now)

    assert result.processed_count == 0
    assert store.wfh.get(approved).status == WFHStatus.APPROVED
    assert store.wfh.get(rejected).admin_notes == "no evidence"
    assert store.attendance.all() == []


def test_metadata_is_carried_through(store, service, fixed_now):
    rid = store.wfh.add(
        user_id=5,
        log_time=jakarta(2026, 2, 9, 9, 0),
        activity_description="Release notes",
        screenshot_url="/uploads/shot.jpg",
        latitude=-6.2088,
        longitude=106.8456,
    )

    service.reconcile_all(now=fixed_now)

    req = store.wfh.get(rid)
    assert req.activity_description == "Release notes"
    assert req.screenshot_url == "/uploads/shot.jpg"
    assert (req.latitude, req.longitude) == (-6.2088, 106.8456)


def test_day_boundary_follows_business_timezone(store, service):
    # 23:30 UTC on the 9th is already 06:30 on the 10th in Jakarta.
    now = datetime(2026, 2, 9, 23, 30, tzinfo=timezone.utc)
    late_utc_same_local_day = store.wfh.add(user_id=8, log_time=datetime(2026, 2, 9, 18, 0, tzinfo=timezone.utc))
    previous_local_day = store.wfh.add(user_id=8, log_time=datetime(2026, 2, 9, 16, 59, tzinfo=timezone.utc))

    result = service.reconcile_all(now=now)

    assert result.processed_count == 1
    assert store.wfh.get(late_utc_same_local_day).status == WFHStatus.PENDING
    assert store.wfh.get(previous_local_day).status == WFHStatus.REJECTED
    assert store.attendance.for_user(8)[0].work_date == YESTERDAY


def test_clock_is_used_when_now_is_omitted(store, day_policy):
    store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))

    early = WFHReconciliationService(store, day_policy=day_policy, clock=lambda: jakarta(2026, 2, 9, 23, 0))
    assert early.reconcile_all().processed_count == 0

    later = WFHReconciliationService(store, day_policy=day_policy, clock=lambda: jakarta(2026, 2, 10, 0, 1))
    assert later.reconcile_all().processed_count == 1


class FlakyWFH(InMemoryWFH):
    def __init__(self, fail_ids):
        super().__init__()
        self._fail_ids = set(fail_ids)

    def mark_rejected(self, *, request_id, admin_notes):
        if request_id in self._fail_ids:
            raise RuntimeError("lock wait timeout")
        return super().mark_rejected(request_id=request_id, admin_notes=admin_notes)


def test_row_failure_does_not_abort_batch(day_policy, fixed_now):
    wfh = FlakyWFH(fail_ids={2})
    store = InMemoryStore(wfh=wfh)
    svc = WFHReconciliationService(store, day_policy=day_policy)

    wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))
    wfh.add(user_id=2, log_time=jakarta(2026, 2, 9, 9, 0))
    wfh.add(user_id=3, log_time=jakarta(2026, 2, 9, 9, 0))

    result = svc.reconcile_all(now=fixed_now)

    assert result.processed_count == 2
    assert result.absent_records_created == 2
    assert len(result.errors) == 1
    assert "WFH request 2" in result.errors[0]
    assert "user 2" in result.errors[0]
    assert "lock wait timeout" in result.errors[0]
    assert not result.ok

    assert wfh.get(1).status == WFHStatus.REJECTED
    assert wfh.get(2).status == WFHStatus.PENDING
    assert wfh.get(3).status == WFHStatus.REJECTED
    # The failed row's absence was rolled back with its transaction.
    assert store.attendance.for_user(2) == []


class BrokenFetchWFH(InMemoryWFH):
    def list_expired_pending(self, *, before, user_id=None):
        raise ConnectionError("database unavailable")


def test_fetch_failure_returns_structured_result(day_policy, fixed_now):
    svc = WFHReconciliationService(InMemoryStore(wfh=BrokenFetchWFH()), day_policy=day_policy)

    result = svc.reconcile_all(now=fixed_now)
    assert result.processed_count == 0
    assert result.absent_records_created == 0
    assert result.errors == ["Fatal error in WFH cleanup process: database unavailable"]

    per_user = svc.reconcile_for_user(9, now=fixed_now)
    assert per_user.errors == ["Error in user WFH cleanup process: database unavailable"]


def test_malformed_user_id_returns_structured_result(store, service, fixed_now):
    store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))

    result = service.reconcile_for_user("u-123", now=fixed_now)

    assert (result.processed_count, result.absent_records_created) == (0, 0)
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Error in user WFH cleanup process: invalid literal for int()")
    assert store.wfh.get(1).status == WFHStatus.PENDING


def test_reconcile_for_user_only_touches_that_user(store, service, fixed_now):
    mine = store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))
    older = store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 2, 9, 0))
    other = store.wfh.add(user_id=2, log_time=jakarta(2026, 2, 9, 9, 0))

    result = service.reconcile_for_user(1, now=fixed_now)

    assert result.processed_count == 2
    assert result.absent_records_created == 2
    assert store.wfh.get(mine).status == WFHStatus.REJECTED
    assert store.wfh.get(older).status == WFHStatus.REJECTED
    assert store.wfh.get(other).status == WFHStatus.PENDING
    assert service.list_expired_pending(now=fixed_now, user_id=1) == []


def test_row_resolved_by_reviewer_before_lock_is_skipped(day_policy, fixed_now):
    class ReviewerRacesWFH(InMemoryWFH):
        def get_for_update(self, request_id):
            # A reviewer approves right after the batch fetch.
            self.set_status(request_id, WFHStatus.APPROVED, "approved by manager")
            return super().get_for_update(request_id)

    store = InMemoryStore(wfh=ReviewerRacesWFH())
    rid = store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))
    svc = WFHReconciliationService(store, day_policy=day_policy)

    result = svc.reconcile_all(now=fixed_now)

    assert result.processed_count == 0
    assert result.skipped_count == 1
    assert result.errors == []
    assert store.wfh.get(rid).status == WFHStatus.APPROVED
    assert store.attendance.all() == []


class RacingAttendance(InMemoryAttendance):
    """Existence check misses a record another path inserts right after it."""

    def find_for_user_in_window(self, user_id, window):
        found = super().find_for_user_in_window(user_id, window)
        if found is None:
            super().create_record(
                user_id=user_id,
                work_date=window.day,
                check_in_time=window.start + timedelta(hours=2),
                status=AttendanceStatus.PRESENT,
            )
        return found


def test_uniqueness_violation_counts_as_already_handled(day_policy, fixed_now):
    store = InMemoryStore(attendance=RacingAttendance())
    rid = store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))
    svc = WFHReconciliationService(store, day_policy=day_policy)

    result = svc.reconcile_all(now=fixed_now)

    assert result.errors == []
    assert result.processed_count == 1
    assert result.absent_records_created == 0
    assert store.wfh.get(rid).status == WFHStatus.REJECTED
    records = store.attendance.for_user(1)
    assert len(records) == 1
    assert records[0].status == AttendanceStatus.PRESENT


def test_bulk_reject_uses_admin_notes(store, service, fixed_now):
    rid = store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))

    result = service.bulk_reject_expired(admin_user_id=99, now=fixed_now)

    assert result.processed_count == 1
    assert store.wfh.get(rid).admin_notes == "Bulk rejected by admin - request expired (original date: Mon Feb 09 2026)"
    assert store.attendance.for_user(1)[0].note == "Absent - WFH request expired (bulk rejected by admin)"


def test_pending_stats_counts_rows_before_today(store, service, fixed_now):
    store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))
    store.wfh.add(user_id=2, log_time=jakarta(2026, 2, 8, 9, 0))
    store.wfh.add(user_id=3, log_time=jakarta(2026, 2, 8, 9, 0), status=WFHStatus.APPROVED)
    store.wfh.add(user_id=4, log_time=jakarta(2026, 2, 10, 8, 0))

    stats = service.get_pending_stats(now=fixed_now)

    assert stats.expired_pending_count == 2
    assert stats.total_expired_requests == 3
    assert stats.as_of == date(2026, 2, 10)
    assert stats.to_dict()["expiredPendingCount"] == 2


def test_pending_stats_decrease_to_zero(day_policy, fixed_now):
    wfh = FlakyWFH(fail_ids={1})
    store = InMemoryStore(wfh=wfh)
    svc = WFHReconciliationService(store, day_policy=day_policy)
    for user_id in (1, 2, 3):
        wfh.add(user_id=user_id, log_time=jakarta(2026, 2, 6, 9, 0))

    before = svc.get_pending_stats(now=fixed_now)
    svc.reconcile_all(now=fixed_now)
    middle = svc.get_pending_stats(now=fixed_now)
    wfh._fail_ids.clear()
    svc.reconcile_all(now=fixed_now)
    after = svc.get_pending_stats(now=fixed_now)

    assert before.expired_pending_count == 3
    assert middle.expired_pending_count == 1
    assert after.expired_pending_count == 0
    assert before.total_expired_requests == after.total_expired_requests == 3


def test_result_to_dict_uses_api_keys(store, service, fixed_now):
    store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))

    payload = service.reconcile_all(now=fixed_now).to_dict()

    assert payload == {
        "processedCount": 1,
        "absentRecordsCreated": 1,
        "skippedCount": 0,
        "errorsCount": 0,
        "errors": [],
    }


def test_dashboard_lists_expired_and_recent(store, service, fixed_now):
    store.wfh.add(user_id=1, log_time=jakarta(2026, 2, 9, 9, 0))
    store.wfh.add(user_id=2, log_time=jakarta(2026, 2, 10, 8, 0))

    data = service.get_dashboard(now=fixed_now)

    assert data["statistics"]["expiredPendingCount"] == 1
    assert len(data["pendingRequests"]) == 2
    assert [r["userId"] for r in data["expiredPendingRequests"]] == [1]
    assert data["recentRequests"][0]["userId"] == 2


def test_duplicate_error_is_a_domain_error():
    err = DuplicateAttendanceError(3, YESTERDAY)
    assert err.user_id == 3
    assert "2026-02-09" in str(err)


def test_uses_given_day_policy(store, fixed_now):
    # In UTC the 10:00-Jakarta "now" is 03:00 on the 10th, so 20:00 UTC on the 9th is yesterday.
    rid = store.wfh.add(user_id=1, log_time=datetime(2026, 2, 9, 20, 0, tzinfo=timezone.utc))
    svc = WFHReconciliationService(store, day_policy=DayPolicy("UTC"))

    svc.reconcile_all(now=fixed_now)

    assert store.wfh.get(rid).status == WFHStatus.REJECTED
    assert store.attendance.for_user(1)[0].check_in_time == datetime(2026, 2, 9, tzinfo=timezone.utc)

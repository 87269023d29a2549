from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fakes import InMemoryStore
from wfh_attendance.common.datetime_utils import DayPolicy
from wfh_attendance.reconciliation.service import WFHReconciliationService


@pytest.fixture
def fixed_now() -> datetime:
    # 10:00 in Jakarta on 2026-02-10.
    return datetime(2026, 2, 10, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def day_policy() -> DayPolicy:
    return DayPolicy("Asia/Jakarta")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def service(store, day_policy, fixed_now) -> WFHReconciliationService:
    return WFHReconciliationService(store, day_policy=day_policy, clock=lambda: fixed_now)

class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class DuplicateAttendanceError(DomainError):
    """Raised by the store when an attendance record already exists for (user, day)."""

    def __init__(self, user_id: int, work_date):
        super().__init__(f"Attendance already recorded for user {user_id} on {work_date}")
        self.user_id = user_id
        self.work_date = work_date


class CheckInRetryableError(DomainError):
    """Raised when stale WFH state could not be resolved before a check-in.

    The caller should report a transient failure and let the user retry.
    """

    def __init__(self, user_id: int, errors):
        super().__init__(f"Could not resolve expired WFH requests for user {user_id}")
        self.user_id = user_id
        self.errors = list(errors)


class ReconciliationLockTimeout(DomainError):
    """Raised when the per (user, day) reconciliation lock cannot be acquired in time."""


class StaleRequestError(DomainError):
    """Raised when a WFH request changed state underneath an open reconciliation."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization on admin endpoints."""

    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class AttendanceStatus(str, Enum):
    """Normalized attendance outcome stored in the database."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"
    LEAVE = "LEAVE"
    SICK = "SICK"


class WFHStatus(str, Enum):
    """Disposition of a work-from-home declaration."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

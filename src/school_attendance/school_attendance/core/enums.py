from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Closed set of statuses a stored attendance record can carry."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class SessionState(str, Enum):
    """Lifecycle of a teacher's marking session."""

    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    EDITING = "editing"
    SUBMITTED = "submitted"
    FINALIZED = "finalized"

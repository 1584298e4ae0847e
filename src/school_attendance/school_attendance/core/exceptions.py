from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..attendance.model import SubmitResult


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced student or class does not exist."""


class StorageError(DomainError):
    """Raised when the underlying persistence layer is unavailable or fails."""


class PartialBatchFailure(DomainError):
    """Raised when some rows of a batch submit failed while others were written."""

    def __init__(self, result: "SubmitResult"):
        self.result = result
        failed = ", ".join(str(f.student_id) for f in result.failures)
        super().__init__(f"{len(result.failures)} attendance row(s) failed: {failed}")


class SessionStateError(DomainError):
    """Raised when an operation is not allowed in the session's current state."""


class UnsavedMarksError(SessionStateError):
    """Raised when finalizing a session that still holds unsubmitted marks."""

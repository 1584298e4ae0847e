from __future__ import annotations

import logging
from typing import Any, Optional

from ..attendance.model import SubmitResult
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceService
from ..common.validators import optional_text, require_date, require_non_empty, require_status
from ..core.enums import AttendanceStatus, SessionState
from ..core.exceptions import (
    NotFoundError,
    PartialBatchFailure,
    SessionStateError,
    UnsavedMarksError,
    ValidationError,
)
from ..roster.model import Student
from ..roster.repository import RosterRepository
from .model import MarkingSession, WorkingMark

logger = logging.getLogger(__name__)


class SessionController:
    """Load, edit, submit and finalize a marking session.

    The controller is stateless; all session state lives in the
    :class:`MarkingSession` handle the caller passes in.

    Lifecycle::

        start -> LOADED -> mark* -> EDITING -> submit -> SUBMITTED
                                     ^                     |
                                     +------ mark* --------+
        finalize -> FINALIZED (terminal)
    """

    def __init__(
        self,
        attendance_service: AttendanceService,
        attendance: AttendanceRepository,
        roster: RosterRepository,
    ):
        self._service = attendance_service
        self._attendance = attendance
        self._roster = roster

    def start(
        self,
        *,
        actor_id: Optional[str],
        class_id: str,
        attendance_date: Any,
        subject_id: Optional[str] = None,
    ) -> MarkingSession:
        """Build a working set from the roster plus anything already saved for the tuple.

        Reopening a tuple that was submitted earlier restores its marks, which
        is how same-day edits work.
        """

        class_id = require_non_empty(class_id, "class_id")
        attendance_date = require_date(attendance_date)
        subject_id = optional_text(subject_id)
        if self._roster.get_class(class_id) is None:
            raise NotFoundError(f"class {class_id} does not exist")

        roster = list(self._roster.get_enrolled_students(class_id))
        session = MarkingSession(
            actor_id=actor_id,
            class_id=class_id,
            attendance_date=attendance_date,
            subject_id=subject_id,
            roster=roster,
            marks={s.student_id: WorkingMark() for s in roster},
        )

        existing = self._attendance.list_for_session(
            class_id=class_id, attendance_date=attendance_date, subject_id=subject_id
        )
        for r in existing:
            if r.student_id in session.marks:
                session.marks[r.student_id] = WorkingMark(status=r.status, photo=r.photo, notes=r.notes)

        session.cursor = session.next_unmarked_index(-1) if roster else 0
        session.state = SessionState.LOADED
        logger.debug(
            "session started class=%s date=%s subject=%s roster=%d restored=%d",
            class_id, attendance_date, subject_id, len(roster), len(existing),
        )
        return session

    def mark(
        self,
        session: MarkingSession,
        student_id: str,
        status: Any,
        *,
        photo: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> MarkingSession:
        """Replace the student's slot in the working set."""

        self._ensure_editable(session)
        status = require_status(status)
        index = session.index_of(student_id)
        if index is None:
            raise ValidationError(f"student {student_id} is not on the roster of class {session.class_id}")

        session.marks[student_id] = WorkingMark(status=status, photo=photo or None, notes=optional_text(notes))
        session.dirty = True
        session.state = SessionState.EDITING

        if index == session.cursor:
            session.cursor = session.next_unmarked_index(index)
        return session

    def mark_present(self, session: MarkingSession, student_id: str, photo: Optional[str] = None, *, notes: Optional[str] = None) -> MarkingSession:
        return self.mark(session, student_id, AttendanceStatus.PRESENT, photo=photo, notes=notes)

    def mark_absent(self, session: MarkingSession, student_id: str, notes: Optional[str] = None) -> MarkingSession:
        return self.mark(session, student_id, AttendanceStatus.ABSENT, notes=notes)

    def mark_late(self, session: MarkingSession, student_id: str, photo: Optional[str] = None, *, notes: Optional[str] = None) -> MarkingSession:
        return self.mark(session, student_id, AttendanceStatus.LATE, photo=photo, notes=notes)

    def mark_excused(self, session: MarkingSession, student_id: str, notes: Optional[str] = None) -> MarkingSession:
        return self.mark(session, student_id, AttendanceStatus.EXCUSED, notes=notes)

    def current_student(self, session: MarkingSession) -> Optional[Student]:
        if 0 <= session.cursor < len(session.roster):
            return session.roster[session.cursor]
        return None

    def seek(self, session: MarkingSession, student_id: str) -> Student:
        self._ensure_editable(session)
        index = session.index_of(student_id)
        if index is None:
            raise ValidationError(f"student {student_id} is not on the roster of class {session.class_id}")
        session.cursor = index
        return session.roster[index]

    def progress(self, session: MarkingSession) -> dict:
        counts = {s.value: 0 for s in AttendanceStatus}
        unmarked = 0
        for student in session.roster:
            m = session.mark_for(student.student_id)
            if m.status is None:
                unmarked += 1
            else:
                counts[m.status.value] += 1
        counts["not_marked"] = unmarked
        counts["total"] = len(session.roster)
        return counts

    def submit(self, session: MarkingSession) -> SubmitResult:
        """Persist every marked slot, one upsert per student.

        The working set is left untouched whatever happens, so a failed or
        partial submit can simply be retried. Unmarked students are skipped.
        """

        self._ensure_editable(session)
        result = self._service.submit_attendance(
            class_id=session.class_id,
            attendance_date=session.attendance_date,
            subject_id=session.subject_id,
            entries=session.marked_entries(),
            marked_by=session.actor_id,
        )

        if result.ok:
            session.dirty = False
            session.state = SessionState.SUBMITTED
        else:
            session.state = SessionState.EDITING
        return result

    def finalize(self, session: MarkingSession, *, submit_pending: bool = False) -> Optional[SubmitResult]:
        """End the session.

        Finalizing writes nothing by itself. With unsaved marks it raises
        :class:`UnsavedMarksError`, unless ``submit_pending`` is set, in which
        case the marks are submitted first and the session only closes when
        every row was written.
        """

        self._ensure_editable(session)
        result: Optional[SubmitResult] = None
        if session.dirty:
            if not submit_pending:
                pending = len(session.marked_entries())
                raise UnsavedMarksError(f"{pending} mark(s) have not been submitted")
            result = self.submit(session)
            if not result.ok:
                raise PartialBatchFailure(result)

        session.state = SessionState.FINALIZED
        return result

    def release(
        self,
        session: Optional[MarkingSession],
        *,
        submit_pending: bool = False,
        discard: bool = False,
    ) -> Optional[SubmitResult]:
        """Let go of a session before another one replaces it.

        A session with unsaved marks is only given up when the caller either
        submits them (``submit_pending``) or explicitly drops them (``discard``);
        otherwise :class:`UnsavedMarksError` is raised and nothing changes.
        """

        if session is None or session.state == SessionState.FINALIZED or not session.dirty:
            return None
        if submit_pending:
            result = self.submit(session)
            if not result.ok:
                raise PartialBatchFailure(result)
            return result
        if discard:
            logger.info(
                "discarding %d unsaved mark(s) class=%s date=%s",
                len(session.marked_entries()), session.class_id, session.attendance_date,
            )
            return None

        pending = len(session.marked_entries())
        raise UnsavedMarksError(
            f"{pending} mark(s) for class {session.class_id} have not been submitted"
        )

    @staticmethod
    def _ensure_editable(session: MarkingSession) -> None:
        if session.state == SessionState.UNINITIALIZED:
            raise SessionStateError("session has not been started")
        if session.state == SessionState.FINALIZED:
            raise SessionStateError("session is finalized")

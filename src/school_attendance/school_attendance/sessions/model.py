from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from ..attendance.model import AttendanceEntry
from ..common.datetime_utils import parse_iso_date
from ..core.enums import AttendanceStatus, SessionState
from ..roster.model import Student


@dataclass(frozen=True)
class WorkingMark:
    """One roster slot in the working set. ``status=None`` means not marked yet."""

    status: Optional[AttendanceStatus] = None
    photo: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_marked(self) -> bool:
        return self.status is not None


@dataclass
class MarkingSession:
    """Handle for one teacher's marking pass over a class roster.

    Owned by the caller (request or connection context) and passed back into
    every :class:`SessionController` operation.
    """

    actor_id: Optional[str]
    class_id: str
    attendance_date: date
    subject_id: Optional[str] = None
    roster: List[Student] = field(default_factory=list)
    marks: Dict[str, WorkingMark] = field(default_factory=dict)
    cursor: int = 0
    state: SessionState = SessionState.UNINITIALIZED
    dirty: bool = False

    def index_of(self, student_id: str) -> Optional[int]:
        for i, s in enumerate(self.roster):
            if s.student_id == student_id:
                return i
        return None

    def mark_for(self, student_id: str) -> WorkingMark:
        return self.marks.get(student_id, WorkingMark())

    def next_unmarked_index(self, after: int) -> int:
        """First unmarked slot after ``after``, wrapping once; ``len(roster)`` when none left."""

        n = len(self.roster)
        for step in range(1, n + 1):
            i = (after + step) % n
            if not self.mark_for(self.roster[i].student_id).is_marked:
                return i
        return n

    def unmarked(self) -> List[Student]:
        return [s for s in self.roster if not self.mark_for(s.student_id).is_marked]

    def marked_entries(self) -> List[AttendanceEntry]:
        out: List[AttendanceEntry] = []
        for s in self.roster:
            m = self.mark_for(s.student_id)
            if m.status is None:
                continue
            out.append(AttendanceEntry(student_id=s.student_id, status=m.status, photo=m.photo, notes=m.notes))
        return out

    def to_dict(self) -> dict:
        return {
            "actor_id": self.actor_id,
            "class_id": self.class_id,
            "date": self.attendance_date.strftime("%Y-%m-%d"),
            "subject_id": self.subject_id,
            "roster": [
                {"student_id": s.student_id, "name": s.name, "roll_number": s.roll_number} for s in self.roster
            ],
            "marks": {
                sid: {"status": m.status.value if m.status else None, "photo": m.photo, "notes": m.notes}
                for sid, m in self.marks.items()
            },
            "cursor": self.cursor,
            "state": self.state.value,
            "dirty": self.dirty,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MarkingSession":
        return cls(
            actor_id=data.get("actor_id"),
            class_id=data["class_id"],
            attendance_date=parse_iso_date(data["date"]),
            subject_id=data.get("subject_id"),
            roster=[
                Student(student_id=r["student_id"], name=r["name"], roll_number=r.get("roll_number"))
                for r in data.get("roster", [])
            ],
            marks={
                sid: WorkingMark(
                    status=AttendanceStatus(m["status"]) if m.get("status") else None,
                    photo=m.get("photo"),
                    notes=m.get("notes"),
                )
                for sid, m in data.get("marks", {}).items()
            },
            cursor=int(data.get("cursor", 0)),
            state=SessionState(data.get("state", SessionState.UNINITIALIZED.value)),
            dirty=bool(data.get("dirty", False)),
        )

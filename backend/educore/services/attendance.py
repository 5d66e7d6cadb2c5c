import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from ..models import Attendance, SchoolClass, Student
from ..schemas import AttendanceBulkRequest, AttendanceEntry, AttendanceSummary
from .common import commit, get_or_404

logger = logging.getLogger(__name__)


def bulk_mark_attendance(db: Session, payload: AttendanceBulkRequest, *, actor_id: str) -> list[Attendance]:
    """Upsert one row per (student, class, date); re-submitting a batch is a no-op."""
    get_or_404(db, SchoolClass, payload.class_id, "Class not found")

    # Later entries for the same student win, as they would with sequential upserts.
    latest = {record.student_id: record.is_present for record in payload.records}
    known = {row.id for row in db.query(Student.id).filter(Student.id.in_(list(latest))).all()}
    missing = sorted(set(latest) - known)
    if missing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student not found: {', '.join(missing)}")

    rows = []
    for student_id, is_present in latest.items():
        row = (
            db.query(Attendance)
            .filter(
                Attendance.student_id == student_id,
                Attendance.class_id == payload.class_id,
                Attendance.date == payload.date,
            )
            .first()
        )
        if row is None:
            row = Attendance(student_id=student_id, class_id=payload.class_id, date=payload.date)
            db.add(row)
        row.is_present = is_present
        row.marked_by = actor_id
        rows.append(row)

    commit(db)
    for row in rows:
        db.refresh(row)
    logger.info(f"Attendance for class {payload.class_id} on {payload.date}: {len(rows)} record(s) by {actor_id}")
    return rows


def list_class_attendance(db: Session, class_id: str, day: str) -> list[Attendance]:
    return (
        db.query(Attendance)
        .join(Student, Student.id == Attendance.student_id)
        .options(joinedload(Attendance.student))
        .filter(Attendance.class_id == class_id, Attendance.date == day)
        .order_by(Student.roll_number)
        .all()
    )


def student_attendance_summary(db: Session, student_id: str) -> AttendanceSummary:
    get_or_404(db, Student, student_id, "Student not found")
    rows = (
        db.query(Attendance)
        .filter(Attendance.student_id == student_id)
        .order_by(Attendance.date.desc())
        .all()
    )
    total = len(rows)
    present = sum(1 for row in rows if row.is_present)
    return AttendanceSummary(
        records=[AttendanceEntry.model_validate(row) for row in rows],
        total=total,
        present=present,
        absent=total - present,
        percentage=round(present / total * 100) if total else 0,
    )

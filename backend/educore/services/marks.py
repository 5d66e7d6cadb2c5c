import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Mark, SchoolClass, Student, utcnow
from ..responses import PayloadValidationError
from ..schemas import MarkCreate, MarkUpdate
from .common import commit, get_or_404

logger = logging.getLogger(__name__)


def list_student_marks(db: Session, student_id: str, academic_year: Optional[str] = None) -> list[Mark]:
    get_or_404(db, Student, student_id, "Student not found")
    query = db.query(Mark).filter(Mark.student_id == student_id)
    if academic_year:
        query = query.filter(Mark.academic_year == academic_year)
    return query.order_by(Mark.subject, Mark.exam_type, Mark.assignment_no).all()


def create_mark(db: Session, payload: MarkCreate, *, actor_id: str) -> Mark:
    get_or_404(db, Student, payload.student_id, "Student not found")
    get_or_404(db, SchoolClass, payload.class_id, "Class not found")
    mark = Mark(**payload.model_dump(), entered_by=actor_id)
    db.add(mark)
    commit(db)
    db.refresh(mark)
    logger.info(f"Mark {mark.id} entered for student {mark.student_id} by {actor_id}")
    return mark


def update_mark(db: Session, mark_id: str, payload: MarkUpdate, *, actor_id: str) -> Mark:
    mark = get_or_404(db, Mark, mark_id, "Mark not found")
    max_marks = payload.max_marks if payload.max_marks is not None else mark.max_marks
    if payload.marks_obtained > max_marks:
        raise PayloadValidationError({"marks_obtained": ["marks_obtained cannot exceed max_marks"]})

    mark.marks_obtained = payload.marks_obtained
    mark.max_marks = max_marks
    mark.entered_by = actor_id
    mark.updated_at = utcnow()
    commit(db)
    db.refresh(mark)
    return mark

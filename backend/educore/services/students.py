import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..models import SchoolClass, Student
from ..pagination import Pagination, paginate
from ..schemas import StudentCreate, StudentUpdate, dump_changes
from .common import apply_changes, commit, get_or_404

logger = logging.getLogger(__name__)


def list_students(db: Session, pagination: Pagination, *, class_id: Optional[str] = None) -> tuple[list[Student], dict]:
    query = (
        db.query(Student)
        .options(joinedload(Student.school_class))
        .filter(Student.is_active.is_(True))
    )
    if class_id:
        query = query.filter(Student.class_id == class_id)
    return paginate(query.order_by(Student.class_id, Student.roll_number), pagination)


def list_students_by_class(db: Session, class_id: str) -> list[Student]:
    return (
        db.query(Student)
        .filter(Student.class_id == class_id, Student.is_active.is_(True))
        .order_by(Student.roll_number)
        .all()
    )


def get_student(db: Session, student_id: str) -> Student:
    return get_or_404(db, Student, student_id, "Student not found")


def get_next_roll_number(db: Session, class_id: str) -> int:
    highest = db.query(func.max(Student.roll_number)).filter(Student.class_id == class_id).scalar()
    return (highest or 0) + 1


def create_student(db: Session, payload: StudentCreate) -> Student:
    get_or_404(db, SchoolClass, payload.class_id, "Class not found")
    student = Student(**payload.model_dump())
    db.add(student)
    commit(db, "Student already exists")
    db.refresh(student)
    logger.info(f"Student {student.id} created in class {student.class_id}")
    return student


def update_student(db: Session, student_id: str, payload: StudentUpdate) -> Student:
    student = get_student(db, student_id)
    changes = dump_changes(payload)
    if changes.get("class_id"):
        get_or_404(db, SchoolClass, changes["class_id"], "Class not found")
    apply_changes(student, changes)
    commit(db)
    db.refresh(student)
    return student

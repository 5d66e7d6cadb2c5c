import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from ..config import Settings
from ..models import ClassTeacher, Department, Teacher, User, UserRole
from ..pagination import Pagination, paginate
from ..schemas import TeacherCreate, TeacherUpdate, dump_changes
from .auth import new_user
from .common import commit, get_or_404

logger = logging.getLogger(__name__)

_USER_FIELDS = ("name", "department_id")


def _with_relations(query):
    return query.options(joinedload(Teacher.user), joinedload(Teacher.department))


def list_teachers(db: Session, pagination: Pagination) -> tuple[list[Teacher], dict]:
    query = _with_relations(db.query(Teacher)).filter(Teacher.is_active.is_(True))
    return paginate(query.order_by(Teacher.employee_id), pagination)


def list_teachers_by_department(db: Session, department_id: str) -> list[Teacher]:
    return (
        _with_relations(db.query(Teacher))
        .filter(Teacher.department_id == department_id, Teacher.is_active.is_(True))
        .order_by(Teacher.employee_id)
        .all()
    )


def get_teacher(db: Session, teacher_id: str) -> Teacher:
    teacher = (
        _with_relations(db.query(Teacher))
        .options(joinedload(Teacher.assignments).joinedload(ClassTeacher.school_class))
        .filter(Teacher.id == teacher_id)
        .first()
    )
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    return teacher


def create_teacher(db: Session, settings: Settings, payload: TeacherCreate) -> Teacher:
    get_or_404(db, Department, payload.department_id, "Department not found")
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    user = new_user(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=UserRole.TEACHER,
        department_id=payload.department_id,
        rounds=settings.bcrypt_rounds,
    )
    db.add(user)
    db.flush()

    teacher = Teacher(
        user_id=user.id,
        employee_id=payload.employee_id,
        department_id=payload.department_id,
        subjects=payload.subjects,
        qualification=payload.qualification,
        joining_date=payload.joining_date,
        phone=payload.phone,
    )
    db.add(teacher)
    # The account and the profile land together or not at all.
    commit(db, "Teacher with this employee id or email already exists")
    logger.info(f"Teacher {teacher.id} created for user {user.id}")
    return get_teacher(db, teacher.id)


def update_teacher(db: Session, teacher_id: str, payload: TeacherUpdate) -> Teacher:
    teacher = get_or_404(db, Teacher, teacher_id, "Teacher not found")
    changes = dump_changes(payload)
    if changes.get("department_id"):
        get_or_404(db, Department, changes["department_id"], "Department not found")

    for field, value in changes.items():
        if field != "name":
            setattr(teacher, field, value)
    user_changes = {field: changes[field] for field in _USER_FIELDS if changes.get(field) is not None}
    for field, value in user_changes.items():
        setattr(teacher.user, field, value.strip() if field == "name" else value)

    commit(db)
    return get_teacher(db, teacher_id)


def deactivate_teacher(db: Session, teacher_id: str) -> Teacher:
    teacher = get_or_404(db, Teacher, teacher_id, "Teacher not found")
    teacher.is_active = False
    teacher.user.is_active = False
    commit(db)
    logger.info(f"Teacher {teacher_id} and user {teacher.user_id} deactivated")
    return get_teacher(db, teacher_id)

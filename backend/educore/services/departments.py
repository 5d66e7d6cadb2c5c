import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from ..models import ClassTeacher, Department, SchoolClass, Teacher, User, UserRole
from ..schemas import AssignTeacherRequest, TokenClaims
from .common import commit, get_or_404

logger = logging.getLogger(__name__)


def list_departments(db: Session) -> list[Department]:
    return db.query(Department).options(joinedload(Department.hod)).order_by(Department.name).all()


def assign_hod(db: Session, department_id: str, hod_user_id: str) -> Department:
    user = get_or_404(db, User, hod_user_id, "User not found")
    if user.role != UserRole.HOD:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User must have the HOD role")
    department = get_or_404(db, Department, department_id, "Department not found")

    # Both sides of the relationship change in the same transaction.
    department.hod_id = user.id
    user.department_id = department.id
    commit(db)
    db.refresh(department)
    logger.info(f"User {user.id} assigned as HOD of department {department.id}")
    return department


def assign_teacher_to_class(
    db: Session, department_id: str, payload: AssignTeacherRequest, claims: TokenClaims
) -> ClassTeacher:
    get_or_404(db, Department, department_id, "Department not found")
    teacher = get_or_404(db, Teacher, payload.teacher_id, "Teacher not found")
    # An HOD manages only their own department, whatever the path says.
    if teacher.department_id != (claims.department_id or department_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Teacher does not belong to your department")
    get_or_404(db, SchoolClass, payload.class_id, "Class not found")

    assignment = (
        db.query(ClassTeacher)
        .filter(
            ClassTeacher.teacher_id == payload.teacher_id,
            ClassTeacher.class_id == payload.class_id,
            ClassTeacher.subject == payload.subject,
        )
        .first()
    )
    if assignment is None:
        assignment = ClassTeacher(
            teacher_id=payload.teacher_id,
            class_id=payload.class_id,
            subject=payload.subject,
        )
        db.add(assignment)
    assignment.assigned_by = claims.user_id
    commit(db)
    db.refresh(assignment)
    logger.info(f"Teacher {teacher.id} assigned to class {payload.class_id} for {payload.subject}")
    return assignment

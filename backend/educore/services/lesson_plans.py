"""Lesson plan submission and the HOD review workflow.

A plan starts ``pending`` and moves once to ``approved`` or ``rejected``.
Every transition, including a teacher's edit, is a conditional update on the
pending status, so a plan that has already been reviewed cannot be touched.
"""
import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from ..models import LessonPlan, ReviewStatus, SchoolClass, Teacher, UserRole, utcnow
from ..pagination import Pagination, paginate
from ..schemas import LessonPlanCreate, LessonPlanUpdate, TokenClaims, dump_changes
from .common import commit, conditional_update, get_or_404

logger = logging.getLogger(__name__)

ALREADY_REVIEWED = "Lesson plan not found or already reviewed"
NOT_EDITABLE = "Lesson plan not found or not editable"


def _not_found(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)


def teacher_profile_for(db: Session, user_id: str) -> Teacher:
    teacher = db.query(Teacher).filter(Teacher.user_id == user_id).first()
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Teacher profile not found for this user")
    return teacher


def list_lesson_plans(
    db: Session,
    claims: TokenClaims,
    pagination: Pagination,
    *,
    status_filter: Optional[ReviewStatus] = None,
) -> tuple[list[LessonPlan], dict]:
    query = db.query(LessonPlan).options(joinedload(LessonPlan.school_class))
    if claims.role == UserRole.TEACHER:
        query = query.filter(LessonPlan.teacher_id == teacher_profile_for(db, claims.user_id).id)
    elif claims.role == UserRole.HOD:
        department_teachers = db.query(Teacher.id).filter(Teacher.department_id == claims.department_id)
        query = query.filter(LessonPlan.teacher_id.in_(department_teachers.scalar_subquery()))
    if status_filter:
        query = query.filter(LessonPlan.status == status_filter)
    return paginate(query.order_by(LessonPlan.created_at.desc()), pagination)


def get_lesson_plan(db: Session, plan_id: str, claims: TokenClaims) -> LessonPlan:
    plan = get_or_404(db, LessonPlan, plan_id, "Lesson plan not found")
    if claims.role == UserRole.TEACHER:
        in_scope = plan.teacher_id == teacher_profile_for(db, claims.user_id).id
    elif claims.role == UserRole.HOD:
        in_scope = plan.teacher.department_id == claims.department_id
    else:
        in_scope = True
    if not in_scope:
        raise _not_found("Lesson plan not found")
    return plan


def pending_count_for_department(db: Session, department_id: Optional[str]) -> int:
    if not department_id:
        return 0
    return (
        db.query(LessonPlan)
        .join(Teacher, Teacher.id == LessonPlan.teacher_id)
        .filter(Teacher.department_id == department_id, LessonPlan.status == ReviewStatus.PENDING)
        .count()
    )


def create_lesson_plan(db: Session, payload: LessonPlanCreate, *, user_id: str) -> LessonPlan:
    teacher = teacher_profile_for(db, user_id)
    get_or_404(db, SchoolClass, payload.class_id, "Class not found")
    plan = LessonPlan(**payload.model_dump(), teacher_id=teacher.id, status=ReviewStatus.PENDING)
    db.add(plan)
    commit(db)
    db.refresh(plan)
    logger.info(f"Lesson plan {plan.id} submitted by teacher {teacher.id}")
    return plan


def update_lesson_plan(db: Session, plan_id: str, payload: LessonPlanUpdate, *, user_id: str) -> LessonPlan:
    teacher = teacher_profile_for(db, user_id)
    plan = db.get(LessonPlan, plan_id)
    if plan is None or plan.teacher_id != teacher.id:
        raise _not_found(NOT_EDITABLE)

    changes = dump_changes(payload)
    if changes.get("class_id"):
        get_or_404(db, SchoolClass, changes["class_id"], "Class not found")
    updated = conditional_update(
        db, LessonPlan, plan_id, ReviewStatus.PENDING, {**changes, "updated_at": utcnow()}
    )
    if updated is None:
        db.rollback()
        raise _not_found(NOT_EDITABLE)
    commit(db)
    db.refresh(updated)
    return updated


def _review(db: Session, plan_id: str, values: dict) -> LessonPlan:
    plan = conditional_update(db, LessonPlan, plan_id, ReviewStatus.PENDING, values)
    if plan is None:
        db.rollback()
        raise _not_found(ALREADY_REVIEWED)
    commit(db)
    db.refresh(plan)
    logger.info(f"Lesson plan {plan_id} {plan.status.value} by {values['reviewed_by']}")
    return plan


def approve_lesson_plan(db: Session, plan_id: str, *, reviewer_id: str) -> LessonPlan:
    return _review(
        db,
        plan_id,
        {"status": ReviewStatus.APPROVED, "reviewed_by": reviewer_id, "reviewed_at": utcnow()},
    )


def reject_lesson_plan(db: Session, plan_id: str, *, reviewer_id: str, hod_remarks: str) -> LessonPlan:
    return _review(
        db,
        plan_id,
        {
            "status": ReviewStatus.REJECTED,
            "reviewed_by": reviewer_id,
            "reviewed_at": utcnow(),
            "hod_remarks": hod_remarks,
        },
    )

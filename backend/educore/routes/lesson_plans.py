from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_roles
from ..models import ReviewStatus, UserRole
from ..pagination import Pagination, get_pagination
from ..responses import ApiResponse
from ..schemas import (
    LessonPlanCreate,
    LessonPlanOut,
    LessonPlanReject,
    LessonPlanUpdate,
    PendingCount,
    TokenClaims,
)
from ..services import lesson_plans as service

router = APIRouter(prefix="/api/lesson-plans", tags=["Lesson Plans"])

_readers = require_roles(UserRole.TEACHER, UserRole.HOD, UserRole.PRINCIPAL)
_teacher_only = require_roles(UserRole.TEACHER)
_hod_only = require_roles(UserRole.HOD)


@router.get("", response_model=ApiResponse[list[LessonPlanOut]])
def list_lesson_plans(
    status_filter: Optional[ReviewStatus] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_readers),
):
    plans, meta = service.list_lesson_plans(db, claims, pagination, status_filter=status_filter)
    return ApiResponse[list[LessonPlanOut]](data=[LessonPlanOut.model_validate(p) for p in plans], meta=meta)


@router.get("/pending-count", response_model=ApiResponse[PendingCount])
def pending_count(db: Session = Depends(get_db_session), claims: TokenClaims = Depends(_hod_only)):
    count = service.pending_count_for_department(db, claims.department_id)
    return ApiResponse[PendingCount](data=PendingCount(department_id=claims.department_id, pending=count))


@router.get("/{plan_id}", response_model=ApiResponse[LessonPlanOut])
def get_lesson_plan(plan_id: str, db: Session = Depends(get_db_session), claims: TokenClaims = Depends(_readers)):
    plan = service.get_lesson_plan(db, plan_id, claims)
    return ApiResponse[LessonPlanOut](data=LessonPlanOut.model_validate(plan))


@router.post("", response_model=ApiResponse[LessonPlanOut], status_code=status.HTTP_201_CREATED)
def create_lesson_plan(
    payload: LessonPlanCreate,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_teacher_only),
):
    plan = service.create_lesson_plan(db, payload, user_id=claims.user_id)
    return ApiResponse[LessonPlanOut](data=LessonPlanOut.model_validate(plan), message="Lesson plan submitted")


@router.put("/{plan_id}", response_model=ApiResponse[LessonPlanOut])
def update_lesson_plan(
    plan_id: str,
    payload: LessonPlanUpdate,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_teacher_only),
):
    plan = service.update_lesson_plan(db, plan_id, payload, user_id=claims.user_id)
    return ApiResponse[LessonPlanOut](data=LessonPlanOut.model_validate(plan), message="Lesson plan updated")


@router.patch("/{plan_id}/approve", response_model=ApiResponse[LessonPlanOut])
def approve_lesson_plan(plan_id: str, db: Session = Depends(get_db_session), claims: TokenClaims = Depends(_hod_only)):
    plan = service.approve_lesson_plan(db, plan_id, reviewer_id=claims.user_id)
    return ApiResponse[LessonPlanOut](data=LessonPlanOut.model_validate(plan), message="Lesson plan approved")


@router.patch("/{plan_id}/reject", response_model=ApiResponse[LessonPlanOut])
def reject_lesson_plan(
    plan_id: str,
    payload: LessonPlanReject,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_hod_only),
):
    plan = service.reject_lesson_plan(db, plan_id, reviewer_id=claims.user_id, hod_remarks=payload.hod_remarks)
    return ApiResponse[LessonPlanOut](data=LessonPlanOut.model_validate(plan), message="Lesson plan rejected")

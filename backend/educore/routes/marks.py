from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_roles
from ..models import UserRole
from ..responses import ApiResponse
from ..schemas import MarkCreate, MarkOut, MarkUpdate, TokenClaims
from ..services import marks as service

router = APIRouter(prefix="/api/marks", tags=["Marks"])

_teacher_only = require_roles(UserRole.TEACHER)


@router.get("/student/{student_id}", response_model=ApiResponse[list[MarkOut]])
def student_marks(
    student_id: str,
    academic_year: Optional[str] = Query(default=None),
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(UserRole.TEACHER, UserRole.HOD, UserRole.PRINCIPAL)),
):
    marks = service.list_student_marks(db, student_id, academic_year)
    return ApiResponse[list[MarkOut]](data=[MarkOut.model_validate(mark) for mark in marks])


@router.post("", response_model=ApiResponse[MarkOut], status_code=status.HTTP_201_CREATED)
def create_mark(
    payload: MarkCreate,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_teacher_only),
):
    mark = service.create_mark(db, payload, actor_id=claims.user_id)
    return ApiResponse[MarkOut](data=MarkOut.model_validate(mark), message="Marks recorded")


@router.put("/{mark_id}", response_model=ApiResponse[MarkOut])
def update_mark(
    mark_id: str,
    payload: MarkUpdate,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_teacher_only),
):
    mark = service.update_mark(db, mark_id, payload, actor_id=claims.user_id)
    return ApiResponse[MarkOut](data=MarkOut.model_validate(mark), message="Marks updated")

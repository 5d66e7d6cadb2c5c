from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import ALL_ROLES, require_roles
from ..models import UserRole
from ..pagination import Pagination, get_pagination
from ..responses import ApiResponse
from ..schemas import StudentCreate, StudentOut, StudentUpdate, TokenClaims
from ..services import students as service

router = APIRouter(prefix="/api/students", tags=["Students"])


@router.get("", response_model=ApiResponse[list[StudentOut]])
def list_students(
    class_id: Optional[str] = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(UserRole.ADMIN, UserRole.PRINCIPAL, UserRole.HOD)),
):
    students, meta = service.list_students(db, pagination, class_id=class_id)
    return ApiResponse[list[StudentOut]](data=[StudentOut.model_validate(s) for s in students], meta=meta)


@router.get("/class/{class_id}", response_model=ApiResponse[list[StudentOut]])
def list_by_class(
    class_id: str,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(UserRole.ADMIN, UserRole.HOD, UserRole.TEACHER)),
):
    students = service.list_students_by_class(db, class_id)
    return ApiResponse[list[StudentOut]](data=[StudentOut.model_validate(s) for s in students])


@router.get("/{student_id}", response_model=ApiResponse[StudentOut])
def get_student(
    student_id: str,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(*ALL_ROLES)),
):
    return ApiResponse[StudentOut](data=StudentOut.model_validate(service.get_student(db, student_id)))


@router.post("", response_model=ApiResponse[StudentOut], status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreate,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(UserRole.ADMIN)),
):
    student = service.create_student(db, payload)
    return ApiResponse[StudentOut](data=StudentOut.model_validate(student), message="Student created")


@router.put("/{student_id}", response_model=ApiResponse[StudentOut])
def update_student(
    student_id: str,
    payload: StudentUpdate,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(UserRole.ADMIN)),
):
    student = service.update_student(db, student_id, payload)
    return ApiResponse[StudentOut](data=StudentOut.model_validate(student), message="Student updated")

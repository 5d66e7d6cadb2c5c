from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..config import Settings
from ..database import get_db_session
from ..middleware import get_app_settings, require_roles
from ..models import UserRole
from ..pagination import Pagination, get_pagination
from ..responses import ApiResponse
from ..schemas import TeacherCreate, TeacherDetailOut, TeacherOut, TeacherUpdate, TokenClaims
from ..services import teachers as service

router = APIRouter(prefix="/api/teachers", tags=["Teachers"])

_readers = require_roles(UserRole.ADMIN, UserRole.PRINCIPAL, UserRole.HOD)
_admin_only = require_roles(UserRole.ADMIN)


@router.get("", response_model=ApiResponse[list[TeacherOut]])
def list_teachers(
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(_readers),
):
    teachers, meta = service.list_teachers(db, pagination)
    return ApiResponse[list[TeacherOut]](data=[TeacherOut.model_validate(t) for t in teachers], meta=meta)


@router.get("/department/{department_id}", response_model=ApiResponse[list[TeacherOut]])
def list_by_department(
    department_id: str,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(UserRole.PRINCIPAL, UserRole.HOD)),
):
    teachers = service.list_teachers_by_department(db, department_id)
    return ApiResponse[list[TeacherOut]](data=[TeacherOut.model_validate(t) for t in teachers])


@router.get("/{teacher_id}", response_model=ApiResponse[TeacherDetailOut])
def get_teacher(
    teacher_id: str,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(_readers),
):
    return ApiResponse[TeacherDetailOut](data=TeacherDetailOut.model_validate(service.get_teacher(db, teacher_id)))


@router.post("", response_model=ApiResponse[TeacherDetailOut], status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    _: TokenClaims = Depends(_admin_only),
):
    teacher = service.create_teacher(db, settings, payload)
    return ApiResponse[TeacherDetailOut](data=TeacherDetailOut.model_validate(teacher), message="Teacher created")


@router.put("/{teacher_id}", response_model=ApiResponse[TeacherDetailOut])
def update_teacher(
    teacher_id: str,
    payload: TeacherUpdate,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(_admin_only),
):
    teacher = service.update_teacher(db, teacher_id, payload)
    return ApiResponse[TeacherDetailOut](data=TeacherDetailOut.model_validate(teacher), message="Teacher updated")


@router.delete("/{teacher_id}", response_model=ApiResponse[TeacherDetailOut])
def deactivate_teacher(
    teacher_id: str,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(_admin_only),
):
    teacher = service.deactivate_teacher(db, teacher_id)
    return ApiResponse[TeacherDetailOut](data=TeacherDetailOut.model_validate(teacher), message="Teacher deactivated")

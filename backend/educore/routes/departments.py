from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import ALL_ROLES, require_roles
from ..models import UserRole
from ..responses import ApiResponse
from ..schemas import AssignHodRequest, AssignTeacherRequest, ClassTeacherOut, DepartmentOut, TokenClaims
from ..services import departments as service

router = APIRouter(prefix="/api/departments", tags=["Departments"])


@router.get("", response_model=ApiResponse[list[DepartmentOut]])
def list_departments(db: Session = Depends(get_db_session), _: TokenClaims = Depends(require_roles(*ALL_ROLES))):
    departments = service.list_departments(db)
    return ApiResponse[list[DepartmentOut]](data=[DepartmentOut.model_validate(d) for d in departments])


@router.put("/{department_id}/hod", response_model=ApiResponse[DepartmentOut])
def assign_hod(
    department_id: str,
    payload: AssignHodRequest,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(UserRole.PRINCIPAL)),
):
    department = service.assign_hod(db, department_id, payload.hod_user_id)
    return ApiResponse[DepartmentOut](data=DepartmentOut.model_validate(department), message="HOD assigned")


@router.post(
    "/{department_id}/teachers",
    response_model=ApiResponse[ClassTeacherOut],
    status_code=status.HTTP_201_CREATED,
)
def assign_teacher(
    department_id: str,
    payload: AssignTeacherRequest,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(require_roles(UserRole.HOD)),
):
    assignment = service.assign_teacher_to_class(db, department_id, payload, claims)
    return ApiResponse[ClassTeacherOut](data=ClassTeacherOut.model_validate(assignment), message="Teacher assigned")

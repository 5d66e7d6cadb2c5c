from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_roles
from ..models import ReviewStatus, UserRole
from ..pagination import Pagination, get_pagination
from ..responses import ApiResponse
from ..schemas import AdmissionApprovalOut, AdmissionApprove, AdmissionCreate, AdmissionOut, StudentOut, TokenClaims
from ..services import admissions as service

router = APIRouter(prefix="/api/admissions", tags=["Admissions"])

_admin_only = require_roles(UserRole.ADMIN)


@router.get("", response_model=ApiResponse[list[AdmissionOut]])
def list_admissions(
    status_filter: Optional[ReviewStatus] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(_admin_only),
):
    admissions, meta = service.list_admissions(db, pagination, status_filter=status_filter)
    return ApiResponse[list[AdmissionOut]](data=[AdmissionOut.model_validate(a) for a in admissions], meta=meta)


@router.get("/{admission_id}", response_model=ApiResponse[AdmissionOut])
def get_admission(admission_id: str, db: Session = Depends(get_db_session), _: TokenClaims = Depends(_admin_only)):
    return ApiResponse[AdmissionOut](data=AdmissionOut.model_validate(service.get_admission(db, admission_id)))


@router.post("", response_model=ApiResponse[AdmissionOut], status_code=status.HTTP_201_CREATED)
def create_admission(
    payload: AdmissionCreate,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(_admin_only),
):
    admission = service.create_admission(db, payload)
    return ApiResponse[AdmissionOut](data=AdmissionOut.model_validate(admission), message="Admission submitted")


@router.patch("/{admission_id}/approve", response_model=ApiResponse[AdmissionApprovalOut])
def approve_admission(
    admission_id: str,
    payload: AdmissionApprove,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_admin_only),
):
    admission, student = service.approve_admission(
        db, admission_id, class_id=payload.class_id, actor_id=claims.user_id
    )
    data = AdmissionApprovalOut.model_validate(
        {**AdmissionOut.model_validate(admission).model_dump(), "student": StudentOut.model_validate(student)}
    )
    return ApiResponse[AdmissionApprovalOut](data=data, message="Admission approved and student enrolled")


@router.patch("/{admission_id}/reject", response_model=ApiResponse[AdmissionOut])
def reject_admission(
    admission_id: str,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_admin_only),
):
    admission = service.reject_admission(db, admission_id, actor_id=claims.user_id)
    return ApiResponse[AdmissionOut](data=AdmissionOut.model_validate(admission), message="Admission rejected")

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_roles
from ..models import FeeStatus, UserRole
from ..pagination import Pagination, get_pagination
from ..responses import ApiResponse
from ..schemas import FeeCreate, FeeOut, FeePayment, FeeReceiptOut, FeeSummary, TokenClaims
from ..services import fees as service

router = APIRouter(prefix="/api/fees", tags=["Fees"])

_admin_only = require_roles(UserRole.ADMIN)
_reporting = require_roles(UserRole.ADMIN, UserRole.PRINCIPAL)


@router.get("", response_model=ApiResponse[list[FeeOut]])
def list_fees(
    status_filter: Optional[FeeStatus] = Query(default=None, alias="status"),
    academic_year: Optional[str] = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(_admin_only),
):
    fees, meta = service.list_fees(db, pagination, status_filter=status_filter, academic_year=academic_year)
    return ApiResponse[list[FeeOut]](data=[FeeOut.model_validate(fee) for fee in fees], meta=meta)


@router.get("/summary", response_model=ApiResponse[FeeSummary])
def fee_summary(
    academic_year: Optional[str] = Query(default=None),
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(_reporting),
):
    return ApiResponse[FeeSummary](data=service.fee_summary(db, academic_year))


@router.get("/overdue", response_model=ApiResponse[list[FeeOut]])
def overdue_fees(db: Session = Depends(get_db_session), _: TokenClaims = Depends(_reporting)):
    fees = service.list_overdue_fees(db)
    return ApiResponse[list[FeeOut]](data=[FeeOut.model_validate(fee) for fee in fees], meta={"count": len(fees)})


@router.get("/student/{student_id}", response_model=ApiResponse[list[FeeOut]])
def student_fees(student_id: str, db: Session = Depends(get_db_session), _: TokenClaims = Depends(_admin_only)):
    fees = service.list_student_fees(db, student_id)
    return ApiResponse[list[FeeOut]](data=[FeeOut.model_validate(fee) for fee in fees])


@router.post("", response_model=ApiResponse[FeeOut], status_code=status.HTTP_201_CREATED)
def create_fee(
    payload: FeeCreate,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_admin_only),
):
    fee = service.create_fee(db, payload, actor_id=claims.user_id)
    return ApiResponse[FeeOut](data=FeeOut.model_validate(fee), message="Fee record created")


@router.put("/{fee_id}", response_model=ApiResponse[FeeOut])
def record_payment(
    fee_id: str,
    payload: FeePayment,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_admin_only),
):
    fee = service.record_payment(db, fee_id, payload, actor_id=claims.user_id)
    return ApiResponse[FeeOut](data=FeeOut.model_validate(fee), message="Fee updated")


@router.get("/{fee_id}/receipt", response_model=ApiResponse[FeeReceiptOut])
def fee_receipt(fee_id: str, db: Session = Depends(get_db_session), _: TokenClaims = Depends(_admin_only)):
    fee, text = service.get_receipt(db, fee_id)
    data = FeeReceiptOut.model_validate({**FeeOut.model_validate(fee).model_dump(), "receipt_text": text})
    return ApiResponse[FeeReceiptOut](data=data)

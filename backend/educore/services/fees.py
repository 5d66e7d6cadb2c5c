import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from ..models import Fee, FeeStatus, Student
from ..pagination import Pagination, paginate
from ..receipts import ReceiptData, build_receipt_text, generate_receipt_number
from ..schemas import FeeCreate, FeePayment, FeeSummary
from .common import commit, get_or_404

logger = logging.getLogger(__name__)

OPEN_STATUSES = (FeeStatus.UNPAID, FeeStatus.PARTIAL)


def derive_fee_status(amount_due: float, amount_paid: float) -> FeeStatus:
    if amount_paid >= amount_due:
        return FeeStatus.PAID
    if amount_paid > 0:
        return FeeStatus.PARTIAL
    return FeeStatus.UNPAID


def _today() -> str:
    return date.today().isoformat()


def _fee_query(db: Session):
    return db.query(Fee).options(joinedload(Fee.student))


def list_fees(
    db: Session,
    pagination: Pagination,
    *,
    status_filter: Optional[FeeStatus] = None,
    academic_year: Optional[str] = None,
) -> tuple[list[Fee], dict]:
    query = _fee_query(db)
    if status_filter:
        query = query.filter(Fee.status == status_filter)
    if academic_year:
        query = query.filter(Fee.academic_year == academic_year)
    return paginate(query.order_by(Fee.due_date.desc(), Fee.id), pagination)


def list_student_fees(db: Session, student_id: str) -> list[Fee]:
    get_or_404(db, Student, student_id, "Student not found")
    return _fee_query(db).filter(Fee.student_id == student_id).order_by(Fee.academic_year, Fee.term).all()


def list_overdue_fees(db: Session, today: Optional[str] = None) -> list[Fee]:
    return (
        _fee_query(db)
        .filter(Fee.status.in_(OPEN_STATUSES), Fee.due_date < (today or _today()))
        .order_by(Fee.due_date)
        .all()
    )


def get_fee(db: Session, fee_id: str) -> Fee:
    return get_or_404(db, Fee, fee_id, "Fee record not found")


def create_fee(db: Session, payload: FeeCreate, *, actor_id: str) -> Fee:
    get_or_404(db, Student, payload.student_id, "Student not found")
    fee = Fee(**payload.model_dump(), amount_paid=0, status=FeeStatus.UNPAID, updated_by=actor_id)
    db.add(fee)
    commit(db)
    db.refresh(fee)
    logger.info(f"Fee {fee.id} created for student {fee.student_id}")
    return fee


def record_payment(db: Session, fee_id: str, payload: FeePayment, *, actor_id: str) -> Fee:
    """Apply a payment total and re-derive status, paid date and receipt number."""
    fee = get_fee(db, fee_id)
    new_status = derive_fee_status(fee.amount_due, payload.amount_paid)

    fee.amount_paid = payload.amount_paid
    fee.status = new_status
    fee.updated_by = actor_id
    if new_status == FeeStatus.UNPAID:
        fee.paid_date = None
    else:
        fee.paid_date = payload.paid_date or fee.paid_date or _today()
        # Once issued, a receipt number is never regenerated.
        if not fee.receipt_number:
            fee.receipt_number = generate_receipt_number()

    commit(db)
    db.refresh(fee)
    logger.info(f"Fee {fee.id} updated to {new_status.value} by {actor_id}")
    return fee


def get_receipt(db: Session, fee_id: str) -> tuple[Fee, str]:
    fee = get_fee(db, fee_id)
    if fee.status not in (FeeStatus.PAID, FeeStatus.PARTIAL) or not fee.receipt_number:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Receipt only available for paid or partial payments",
        )
    student = fee.student
    text = build_receipt_text(
        ReceiptData(
            receipt_number=fee.receipt_number,
            student_name=f"{student.first_name} {student.last_name}",
            student_id=student.id,
            academic_year=fee.academic_year,
            term=fee.term,
            amount_due=fee.amount_due,
            amount_paid=fee.amount_paid,
            paid_date=fee.paid_date or "",
            updated_by_name=fee.updated_by_user.name if fee.updated_by_user else "Accounts Office",
        )
    )
    return fee, text


def fee_summary(db: Session, academic_year: Optional[str] = None) -> FeeSummary:
    query = db.query(Fee)
    if academic_year:
        query = query.filter(Fee.academic_year == academic_year)
    fees = query.all()

    total_due = sum(fee.amount_due for fee in fees)
    total_paid = sum(fee.amount_paid for fee in fees)
    counts = {fee_status: 0 for fee_status in FeeStatus}
    for fee in fees:
        counts[fee.status] += 1
    return FeeSummary(
        academic_year=academic_year,
        total_due=total_due,
        total_paid=total_paid,
        outstanding=max(total_due - total_paid, 0),
        paid_count=counts[FeeStatus.PAID],
        partial_count=counts[FeeStatus.PARTIAL],
        unpaid_count=counts[FeeStatus.UNPAID],
    )

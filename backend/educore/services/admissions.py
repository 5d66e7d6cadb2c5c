import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..models import Admission, ReviewStatus, SchoolClass, Student, utcnow
from ..pagination import Pagination, paginate
from ..schemas import AdmissionCreate
from .common import commit, conditional_update, get_or_404
from .students import get_next_roll_number

logger = logging.getLogger(__name__)

ALREADY_PROCESSED = "Admission not found or already processed"


def _already_processed() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ALREADY_PROCESSED)


def list_admissions(
    db: Session, pagination: Pagination, *, status_filter: Optional[ReviewStatus] = None
) -> tuple[list[Admission], dict]:
    query = db.query(Admission)
    if status_filter:
        query = query.filter(Admission.status == status_filter)
    return paginate(query.order_by(Admission.created_at.desc()), pagination)


def get_admission(db: Session, admission_id: str) -> Admission:
    return get_or_404(db, Admission, admission_id, "Admission not found")


def create_admission(db: Session, payload: AdmissionCreate) -> Admission:
    admission = Admission(**payload.model_dump(), status=ReviewStatus.PENDING)
    db.add(admission)
    commit(db)
    db.refresh(admission)
    logger.info(f"Admission {admission.id} received for grade {admission.grade_applying}")
    return admission


def approve_admission(db: Session, admission_id: str, *, class_id: str, actor_id: str) -> tuple[Admission, Student]:
    """Approve a pending application and enrol the student, all in one transaction.

    Of two concurrent approvals only one matches the pending row; the other
    gets a 404 and creates no student.
    """
    get_or_404(db, SchoolClass, class_id, "Class not found")
    admission = conditional_update(
        db,
        Admission,
        admission_id,
        ReviewStatus.PENDING,
        {"status": ReviewStatus.APPROVED, "reviewed_by": actor_id, "reviewed_at": utcnow()},
    )
    if admission is None:
        db.rollback()
        raise _already_processed()

    student = Student(
        roll_number=get_next_roll_number(db, class_id),
        first_name=admission.first_name,
        last_name=admission.last_name,
        date_of_birth=admission.date_of_birth,
        gender=admission.gender,
        class_id=class_id,
        parent_name=admission.parent_name,
        parent_email=admission.parent_email,
        parent_phone=admission.parent_phone,
        address=admission.address,
        previous_school=admission.previous_school,
    )
    db.add(student)
    commit(db)
    db.refresh(admission)
    db.refresh(student)
    logger.info(f"Admission {admission_id} approved by {actor_id}; student {student.id} enrolled in {class_id}")
    return admission, student


def reject_admission(db: Session, admission_id: str, *, actor_id: str) -> Admission:
    admission = conditional_update(
        db,
        Admission,
        admission_id,
        ReviewStatus.PENDING,
        {"status": ReviewStatus.REJECTED, "reviewed_by": actor_id, "reviewed_at": utcnow()},
    )
    if admission is None:
        db.rollback()
        raise _already_processed()
    commit(db)
    db.refresh(admission)
    logger.info(f"Admission {admission_id} rejected by {actor_id}")
    return admission

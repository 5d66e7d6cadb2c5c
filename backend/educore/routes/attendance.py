from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_roles
from ..models import UserRole
from ..responses import ApiResponse
from ..schemas import DATE_PATTERN, AttendanceBulkRequest, AttendanceOut, AttendanceSummary, TokenClaims
from ..services import attendance as service

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])

_teacher_only = require_roles(UserRole.TEACHER)


@router.get("/student/{student_id}", response_model=ApiResponse[AttendanceSummary])
def student_summary(
    student_id: str,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(UserRole.TEACHER, UserRole.HOD, UserRole.PRINCIPAL)),
):
    return ApiResponse[AttendanceSummary](data=service.student_attendance_summary(db, student_id))


@router.get("/class/{class_id}/date/{day}", response_model=ApiResponse[list[AttendanceOut]])
def class_attendance(
    class_id: str,
    day: str = Path(pattern=DATE_PATTERN),
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(_teacher_only),
):
    rows = service.list_class_attendance(db, class_id, day)
    return ApiResponse[list[AttendanceOut]](data=[AttendanceOut.model_validate(row) for row in rows])


@router.post("/bulk", response_model=ApiResponse[list[AttendanceOut]])
def bulk_mark(
    payload: AttendanceBulkRequest,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_teacher_only),
):
    rows = service.bulk_mark_attendance(db, payload, actor_id=claims.user_id)
    return ApiResponse[list[AttendanceOut]](
        data=[AttendanceOut.model_validate(row) for row in rows],
        message="Attendance saved",
        meta={"count": len(rows)},
    )

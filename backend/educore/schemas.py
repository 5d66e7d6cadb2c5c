import re
from datetime import datetime
from typing import Annotated, Any, ClassVar, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic_core import PydanticCustomError

from .models import ExamType, FeeStatus, Gender, ReviewStatus, UserRole, Weekday


DATE_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
ACADEMIC_YEAR_PATTERN = r"^\d{4}-\d{2}$"
UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

UuidStr = Annotated[str, Field(pattern=UUID_PATTERN)]
DateStr = Annotated[str, Field(pattern=DATE_PATTERN)]
TimeStr = Annotated[str, Field(pattern=TIME_PATTERN)]
AcademicYear = Annotated[str, Field(pattern=ACADEMIC_YEAR_PATTERN)]


def _normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError("Invalid email format")
    return normalized


def _normalize_optional_email(value: str) -> str:
    return value if value == "" else _normalize_email(value)


Email = Annotated[str, Field(max_length=255), AfterValidator(_normalize_email)]
# Forms submit an empty string when the parent has no email address.
OptionalEmail = Annotated[str, Field(max_length=255), AfterValidator(_normalize_optional_email)]


def _field_error(field: str, message: str) -> PydanticCustomError:
    # ``field`` lets the error envelope key a model-level failure by field name.
    return PydanticCustomError("cross_field", message, {"field": field})


class RequestModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class PartialUpdate(RequestModel):
    """Body of a partial update: a field may be left out but a NOT NULL column may not be cleared."""

    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @field_validator("*", mode="before")
    @classmethod
    def _reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name in cls.non_nullable:
            raise _field_error(info.field_name, f"{info.field_name} may not be null")
        return value


class OutModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Identity ---

class TokenClaims(BaseModel):
    """Identity claims carried in an access token; the request context."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(alias="sub", min_length=1)
    name: str
    role: UserRole
    department_id: Optional[str] = Field(default=None, alias="departmentId")
    class_ids: tuple[str, ...] = Field(default=(), alias="classIds")


class LoginRequest(RequestModel):
    email: Email
    password: str = Field(min_length=6)
    role: UserRole


class UserOut(OutModel):
    id: str
    name: str
    email: str
    role: UserRole
    department_id: Optional[str] = None
    profile_photo: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class UserBrief(OutModel):
    id: str
    name: str
    email: str


class LoginData(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut


# --- Classes & departments ---

class ClassBrief(OutModel):
    id: str
    name: str
    grade: int
    section: str


class DepartmentBrief(OutModel):
    id: str
    name: str


class DepartmentOut(OutModel):
    id: str
    name: str
    hod_id: Optional[str] = None
    hod: Optional[UserBrief] = None


class AssignHodRequest(RequestModel):
    hod_user_id: UuidStr


class AssignTeacherRequest(RequestModel):
    teacher_id: UuidStr
    class_id: UuidStr
    subject: str = Field(min_length=1, max_length=100)


class ClassTeacherOut(OutModel):
    id: str
    teacher_id: str
    class_id: str
    subject: str
    assigned_by: Optional[str] = None
    school_class: Optional[ClassBrief] = None


# --- Students ---

class StudentCreate(RequestModel):
    roll_number: int = Field(gt=0)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: DateStr
    gender: Gender
    class_id: UuidStr
    parent_name: str = Field(min_length=1, max_length=150)
    parent_email: Optional[OptionalEmail] = None
    parent_phone: str = Field(min_length=7, max_length=20)
    address: Optional[str] = None
    previous_school: Optional[str] = None


class StudentUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset(
        {"roll_number", "first_name", "last_name", "date_of_birth", "gender", "class_id", "parent_name", "parent_phone"}
    )

    roll_number: Optional[int] = Field(default=None, gt=0)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    date_of_birth: Optional[DateStr] = None
    gender: Optional[Gender] = None
    class_id: Optional[UuidStr] = None
    parent_name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    parent_email: Optional[OptionalEmail] = None
    parent_phone: Optional[str] = Field(default=None, min_length=7, max_length=20)
    address: Optional[str] = None
    previous_school: Optional[str] = None


class StudentOut(OutModel):
    id: str
    roll_number: int
    first_name: str
    last_name: str
    date_of_birth: str
    gender: Gender
    class_id: str
    parent_name: str
    parent_email: Optional[str] = None
    parent_phone: str
    address: Optional[str] = None
    previous_school: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    school_class: Optional[ClassBrief] = None


class StudentBrief(OutModel):
    id: str
    first_name: str
    last_name: str
    roll_number: int
    class_id: str


# --- Teachers ---

class TeacherCreate(RequestModel):
    name: str = Field(min_length=1, max_length=100)
    email: Email
    password: str = Field(min_length=8, max_length=72)
    department_id: UuidStr
    employee_id: str = Field(min_length=1, max_length=20)
    subjects: list[str] = Field(min_length=1)
    qualification: Optional[str] = None
    joining_date: DateStr
    phone: Optional[str] = None


class TeacherUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name", "department_id", "subjects"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    department_id: Optional[UuidStr] = None
    subjects: Optional[list[str]] = None
    qualification: Optional[str] = None
    phone: Optional[str] = None


class TeacherOut(OutModel):
    id: str
    user_id: str
    employee_id: str
    department_id: str
    subjects: list[str]
    qualification: Optional[str] = None
    joining_date: str
    phone: Optional[str] = None
    is_active: bool
    user: Optional[UserBrief] = None
    department: Optional[DepartmentBrief] = None


class TeacherDetailOut(TeacherOut):
    assignments: list[ClassTeacherOut] = []


# --- Fees ---

class FeeCreate(RequestModel):
    student_id: UuidStr
    academic_year: str = Field(pattern=ACADEMIC_YEAR_PATTERN, description="YYYY-YY, e.g. 2025-26")
    term: int = Field(ge=1, le=3)
    amount_due: float = Field(gt=0)
    due_date: DateStr


class FeePayment(RequestModel):
    amount_paid: float = Field(ge=0)
    paid_date: Optional[DateStr] = None


class FeeOut(OutModel):
    id: str
    student_id: str
    academic_year: str
    term: int
    amount_due: float
    amount_paid: float
    due_date: str
    paid_date: Optional[str] = None
    status: FeeStatus
    receipt_number: Optional[str] = None
    updated_by: Optional[str] = None
    student: Optional[StudentBrief] = None


class FeeReceiptOut(FeeOut):
    receipt_text: str


class FeeSummary(BaseModel):
    academic_year: Optional[str] = None
    total_due: float
    total_paid: float
    outstanding: float
    paid_count: int
    partial_count: int
    unpaid_count: int


# --- Admissions ---

class AdmissionCreate(RequestModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: DateStr
    gender: Gender
    grade_applying: int = Field(ge=1, le=10)
    parent_name: str = Field(min_length=1, max_length=150)
    parent_email: Optional[OptionalEmail] = None
    parent_phone: str = Field(min_length=7, max_length=20)
    address: Optional[str] = None
    previous_school: Optional[str] = None


class AdmissionApprove(RequestModel):
    class_id: UuidStr


class AdmissionOut(OutModel):
    id: str
    first_name: str
    last_name: str
    date_of_birth: str
    gender: Gender
    grade_applying: int
    parent_name: str
    parent_email: Optional[str] = None
    parent_phone: str
    address: Optional[str] = None
    previous_school: Optional[str] = None
    status: ReviewStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AdmissionApprovalOut(AdmissionOut):
    student: StudentOut


# --- Attendance ---

class AttendanceRecordIn(RequestModel):
    student_id: UuidStr
    is_present: bool


class AttendanceBulkRequest(RequestModel):
    class_id: UuidStr
    date: DateStr
    records: list[AttendanceRecordIn] = Field(min_length=1)


class AttendanceOut(OutModel):
    id: str
    student_id: str
    class_id: str
    date: str
    is_present: bool
    marked_by: Optional[str] = None
    student: Optional[StudentBrief] = None


class AttendanceEntry(OutModel):
    date: str
    is_present: bool


class AttendanceSummary(BaseModel):
    records: list[AttendanceEntry]
    total: int
    present: int
    absent: int
    percentage: int


# --- Marks ---

class MarkCreate(RequestModel):
    student_id: UuidStr
    class_id: UuidStr
    subject: str = Field(min_length=1, max_length=100)
    exam_type: ExamType
    assignment_no: Optional[int] = Field(default=None, gt=0)
    max_marks: float = Field(gt=0)
    marks_obtained: float = Field(ge=0)
    academic_year: AcademicYear

    @model_validator(mode="after")
    def _obtained_within_max(self) -> "MarkCreate":
        if self.marks_obtained > self.max_marks:
            raise _field_error("marks_obtained", "marks_obtained cannot exceed max_marks")
        return self


class MarkUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"marks_obtained", "max_marks"})

    marks_obtained: float = Field(ge=0)
    max_marks: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _obtained_within_max(self) -> "MarkUpdate":
        if self.max_marks is not None and self.marks_obtained > self.max_marks:
            raise _field_error("marks_obtained", "marks_obtained cannot exceed max_marks")
        return self


class MarkOut(OutModel):
    id: str
    student_id: str
    class_id: str
    subject: str
    exam_type: ExamType
    assignment_no: Optional[int] = None
    max_marks: float
    marks_obtained: float
    academic_year: str
    entered_by: Optional[str] = None


# --- Timetable ---

class TimetableSlotCreate(RequestModel):
    class_id: UuidStr
    day_of_week: Weekday
    period_number: int = Field(ge=1, le=8)
    start_time: TimeStr
    end_time: TimeStr
    subject: str = Field(min_length=1, max_length=100)
    teacher_id: Optional[UuidStr] = None
    room: Optional[str] = None

    @model_validator(mode="after")
    def _ends_after_start(self) -> "TimetableSlotCreate":
        if self.end_time <= self.start_time:
            raise _field_error("end_time", "end_time must be after start_time")
        return self


class TimetableSlotUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset(
        {"class_id", "day_of_week", "period_number", "start_time", "end_time", "subject"}
    )

    class_id: Optional[UuidStr] = None
    day_of_week: Optional[Weekday] = None
    period_number: Optional[int] = Field(default=None, ge=1, le=8)
    start_time: Optional[TimeStr] = None
    end_time: Optional[TimeStr] = None
    subject: Optional[str] = Field(default=None, min_length=1, max_length=100)
    teacher_id: Optional[UuidStr] = None
    room: Optional[str] = None

    @model_validator(mode="after")
    def _ends_after_start(self) -> "TimetableSlotUpdate":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise _field_error("end_time", "end_time must be after start_time")
        return self


class TimetableSlotOut(OutModel):
    id: str
    class_id: str
    day_of_week: Weekday
    period_number: int
    start_time: str
    end_time: str
    subject: str
    teacher_id: Optional[str] = None
    room: Optional[str] = None
    updated_by: Optional[str] = None


# --- Lesson plans ---

class LessonPlanCreate(RequestModel):
    class_id: UuidStr
    subject: str = Field(min_length=1, max_length=100)
    date: DateStr
    topic: str = Field(min_length=1, max_length=200)
    objectives: str = Field(min_length=1)
    materials: Optional[str] = None
    activities: str = Field(min_length=1)
    assessment: Optional[str] = None


class LessonPlanUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset(
        {"class_id", "subject", "date", "topic", "objectives", "activities"}
    )

    class_id: Optional[UuidStr] = None
    subject: Optional[str] = Field(default=None, min_length=1, max_length=100)
    date: Optional[DateStr] = None
    topic: Optional[str] = Field(default=None, min_length=1, max_length=200)
    objectives: Optional[str] = Field(default=None, min_length=1)
    materials: Optional[str] = None
    activities: Optional[str] = Field(default=None, min_length=1)
    assessment: Optional[str] = None


class LessonPlanReject(RequestModel):
    hod_remarks: str = Field(min_length=1)

    @field_validator("hod_remarks")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("hod_remarks must not be blank")
        return value.strip()


class LessonPlanOut(OutModel):
    id: str
    teacher_id: str
    class_id: str
    subject: str
    date: str
    topic: str
    objectives: str
    materials: Optional[str] = None
    activities: str
    assessment: Optional[str] = None
    status: ReviewStatus
    hod_remarks: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    school_class: Optional[ClassBrief] = None


class PendingCount(BaseModel):
    department_id: Optional[str] = None
    pending: int


# --- Notifications ---

class NotificationCreate(RequestModel):
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    user_id: Optional[UuidStr] = None
    role_target: Optional[list[UserRole]] = None

    @model_validator(mode="after")
    def _has_recipient(self) -> "NotificationCreate":
        if not self.user_id and not self.role_target:
            raise _field_error("user_id", "Provide user_id or role_target")
        return self


class NotificationOut(OutModel):
    id: str
    user_id: Optional[str] = None
    role_target: Optional[list[str]] = None
    title: str
    message: str
    is_read: bool
    created_at: Optional[datetime] = None


# --- Misc ---

class MessageOut(BaseModel):
    message: str


def dump_changes(payload: RequestModel) -> dict[str, Any]:
    """Fields the client actually sent, for partial updates."""
    return payload.model_dump(exclude_unset=True)

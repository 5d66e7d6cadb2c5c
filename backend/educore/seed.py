"""Default school data so a fresh database can be logged into straight away."""
import logging

from sqlalchemy.orm import Session

from .config import Settings
from .models import (
    ClassTeacher,
    Department,
    Gender,
    SchoolClass,
    Student,
    Teacher,
    User,
    UserRole,
)
from .security import hash_password

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "password123"

DEPT_MATH_ID = "00000000-0000-0000-0000-000000000001"
DEPT_SCIENCE_ID = "00000000-0000-0000-0000-000000000002"

ADMIN_ID = "00000000-0000-0000-0001-000000000001"
PRINCIPAL_ID = "00000000-0000-0000-0001-000000000002"
HOD_ID = "00000000-0000-0000-0001-000000000003"
TEACHER_USER_ID = "00000000-0000-0000-0001-000000000004"

CLASS_5A_ID = "00000000-0000-0000-0002-000000000501"
CLASS_6A_ID = "00000000-0000-0000-0002-000000000601"

TEACHER_ID = "00000000-0000-0000-0003-000000000001"

STUDENT_1_ID = "00000000-0000-0000-0004-000000000001"
STUDENT_2_ID = "00000000-0000-0000-0004-000000000002"

SEED_ACCOUNTS = (
    (ADMIN_ID, "School Admin", "admin@educore.school", UserRole.ADMIN, None),
    (PRINCIPAL_ID, "Principal", "principal@educore.school", UserRole.PRINCIPAL, None),
    (HOD_ID, "Head of Mathematics", "hod@educore.school", UserRole.HOD, DEPT_MATH_ID),
    (TEACHER_USER_ID, "Maths Teacher", "teacher@educore.school", UserRole.TEACHER, DEPT_MATH_ID),
)

SEED_EMAILS = tuple(account[2] for account in SEED_ACCOUNTS)


def seed_default_data(db: Session, settings: Settings) -> bool:
    """Insert the demo school once. Returns ``False`` when it is already there."""
    if db.get(User, ADMIN_ID) is not None:
        logger.info("Seed data already present, skipping")
        return False

    db.add_all(
        [
            Department(id=DEPT_MATH_ID, name="Mathematics"),
            Department(id=DEPT_SCIENCE_ID, name="Science"),
            SchoolClass(id=CLASS_5A_ID, name="5-A", grade=5, section="A"),
            SchoolClass(id=CLASS_6A_ID, name="6-A", grade=6, section="A"),
        ]
    )
    db.flush()

    password_hash = hash_password(DEFAULT_PASSWORD, rounds=settings.bcrypt_rounds)
    for user_id, name, email, role, department_id in SEED_ACCOUNTS:
        db.add(
            User(
                id=user_id,
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                department_id=department_id,
            )
        )
    db.flush()

    # departments.hod_id points back at users, so it is set once both rows exist.
    db.get(Department, DEPT_MATH_ID).hod_id = HOD_ID

    db.add(
        Teacher(
            id=TEACHER_ID,
            user_id=TEACHER_USER_ID,
            employee_id="EMP001",
            department_id=DEPT_MATH_ID,
            subjects=["Mathematics"],
            qualification="M.Sc. Mathematics",
            joining_date="2020-06-01",
            phone="9876543210",
        )
    )
    db.flush()
    db.add(ClassTeacher(teacher_id=TEACHER_ID, class_id=CLASS_5A_ID, subject="Mathematics", assigned_by=HOD_ID))
    db.add_all(
        [
            Student(
                id=STUDENT_1_ID,
                roll_number=1,
                first_name="Aarav",
                last_name="Sharma",
                date_of_birth="2015-04-12",
                gender=Gender.MALE,
                class_id=CLASS_5A_ID,
                parent_name="Rakesh Sharma",
                parent_email="rakesh.sharma@example.com",
                parent_phone="9811122233",
            ),
            Student(
                id=STUDENT_2_ID,
                roll_number=2,
                first_name="Diya",
                last_name="Patel",
                date_of_birth="2015-09-03",
                gender=Gender.FEMALE,
                class_id=CLASS_5A_ID,
                parent_name="Meera Patel",
                parent_email="meera.patel@example.com",
                parent_phone="9822233344",
            ),
        ]
    )
    db.commit()
    logger.info(f"Seeded default school data; accounts use password '{DEFAULT_PASSWORD}'")
    return True

import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..config import Settings
from ..models import ClassTeacher, Teacher, User, UserRole
from ..schemas import TokenClaims
from ..security import create_access_token, hash_password, verify_password
from .common import get_or_404

logger = logging.getLogger(__name__)


def _invalid_credentials() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")


def teacher_class_ids(db: Session, user_id: str) -> list[str]:
    teacher = db.query(Teacher).filter(Teacher.user_id == user_id).first()
    if teacher is None:
        return []
    rows = db.query(ClassTeacher.class_id).filter(ClassTeacher.teacher_id == teacher.id).distinct().all()
    return sorted(row.class_id for row in rows)


def login_user(db: Session, settings: Settings, *, email: str, password: str, role: UserRole) -> tuple[str, User]:
    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.info(f"Failed login for {email}")
        raise _invalid_credentials()
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")
    if user.role != role:
        logger.info(f"Login for {email} rejected: requested role {role.value}, account role {user.role.value}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Role does not match")

    class_ids = teacher_class_ids(db, user.id) if user.role == UserRole.TEACHER else []
    claims = TokenClaims(
        user_id=user.id,
        name=user.name,
        role=user.role,
        department_id=user.department_id,
        class_ids=class_ids,
    )
    logger.info(f"User {user.id} logged in as {user.role.value}")
    return create_access_token(claims, settings), user


def get_user(db: Session, user_id: str) -> User:
    return get_or_404(db, User, user_id, "User not found")


def new_user(
    *,
    name: str,
    email: str,
    password: str,
    role: UserRole,
    department_id: str | None = None,
    rounds: int = 12,
) -> User:
    """Build an account with a hashed password; the caller adds and commits it."""
    return User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password, rounds=rounds),
        role=role,
        department_id=department_id,
        is_active=True,
    )

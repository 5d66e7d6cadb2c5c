import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import bcrypt
import jwt
from pydantic import ValidationError

from .config import Settings
from .schemas import TokenClaims

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "role", "exp", "iat"]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed or non-bcrypt hash stored for the account.
        return False


def create_access_token(claims: TokenClaims, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": claims.user_id,
        "name": claims.name,
        "role": claims.role.value,
        "departmentId": claims.department_id,
        "classIds": list(claims.class_ids),
        "iat": int(now.timestamp()),
        "exp": int((now + settings.jwt_expires_in).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str, settings: Settings) -> Optional[TokenClaims]:
    """Return the token's claims, or ``None`` when it cannot be trusted.

    Bad signatures, expiry, malformed structure and unknown roles all map to
    ``None`` so callers cannot tell an expired token from a forged one.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.InvalidTokenError as exc:
        logger.debug(f"Rejected access token: {exc}")
        return None

    try:
        return TokenClaims.model_validate(payload)
    except ValidationError as exc:
        logger.debug(f"Rejected access token payload: {exc.error_count()} invalid claim(s)")
        return None

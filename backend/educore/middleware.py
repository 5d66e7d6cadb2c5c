import logging
from collections.abc import Callable

from fastapi import Depends, Header, HTTPException, Request, status

from .config import Settings
from .models import UserRole
from .schemas import TokenClaims
from .security import verify_access_token

logger = logging.getLogger(__name__)

ALL_ROLES = tuple(UserRole)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _parse_token(auth_header: str | None) -> str:
    if not auth_header:
        raise _unauthenticated("No token provided")
    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise _unauthenticated("No token provided")
    return parts[1].strip()


def get_current_claims(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> TokenClaims:
    token = _parse_token(authorization)
    claims = verify_access_token(token, request.app.state.settings)
    if claims is None:
        logger.info(f"Invalid or expired token on {request.method} {request.url.path}")
        raise _unauthenticated("Invalid or expired token")
    return claims


def require_roles(*allowed_roles: UserRole) -> Callable:
    allowed = frozenset(allowed_roles)
    required = ", ".join(role.value for role in allowed_roles) or "none"

    def dependency(claims: TokenClaims = Depends(get_current_claims)) -> TokenClaims:
        # An empty allow-list never matches, so a misconfigured route stays closed.
        if claims.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role(s): {required}",
            )
        return claims

    return dependency

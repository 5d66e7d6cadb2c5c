from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..config import Settings
from ..database import get_db_session
from ..middleware import get_app_settings, get_current_claims
from ..responses import ApiResponse
from ..schemas import LoginData, LoginRequest, TokenClaims, UserOut
from ..services.auth import get_user, login_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login", response_model=ApiResponse[LoginData])
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
):
    token, user = login_user(db, settings, email=payload.email, password=payload.password, role=payload.role)
    return ApiResponse[LoginData](
        data=LoginData(token=token, user=UserOut.model_validate(user)),
        message="Login successful",
    )


@router.post("/logout", response_model=ApiResponse[None])
def logout(_: TokenClaims = Depends(get_current_claims)):
    # Tokens are stateless; the client drops its copy.
    return ApiResponse[None](message="Logged out. Discard your token on the client.")


@router.get("/me", response_model=ApiResponse[UserOut])
def me(claims: TokenClaims = Depends(get_current_claims), db: Session = Depends(get_db_session)):
    return ApiResponse[UserOut](data=UserOut.model_validate(get_user(db, claims.user_id)))

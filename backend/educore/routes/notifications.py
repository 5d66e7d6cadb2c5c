from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import get_current_claims, require_roles
from ..models import UserRole
from ..responses import ApiResponse
from ..schemas import NotificationCreate, NotificationOut, TokenClaims
from ..services import notifications as service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=ApiResponse[list[NotificationOut]])
def list_notifications(db: Session = Depends(get_db_session), claims: TokenClaims = Depends(get_current_claims)):
    notifications = service.list_notifications(db, claims)
    return ApiResponse[list[NotificationOut]](data=[NotificationOut.model_validate(n) for n in notifications])


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationOut])
def mark_read(
    notification_id: str,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(get_current_claims),
):
    notification = service.mark_read(db, notification_id, claims)
    return ApiResponse[NotificationOut](data=NotificationOut.model_validate(notification))


@router.post("", response_model=ApiResponse[NotificationOut], status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(require_roles(UserRole.ADMIN, UserRole.PRINCIPAL)),
):
    notification = service.create_notification(db, payload, actor_id=claims.user_id)
    return ApiResponse[NotificationOut](data=NotificationOut.model_validate(notification), message="Notification sent")

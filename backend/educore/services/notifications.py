import logging

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models import Notification, User
from ..schemas import NotificationCreate, TokenClaims
from .common import commit, get_or_404

logger = logging.getLogger(__name__)

FEED_LIMIT = 50


def _visible_to(notification: Notification, claims: TokenClaims) -> bool:
    if notification.user_id == claims.user_id:
        return True
    return claims.role.value in (notification.role_target or [])


def list_notifications(db: Session, claims: TokenClaims) -> list[Notification]:
    """Latest notifications addressed to the caller or broadcast to their role."""
    candidates = (
        db.query(Notification)
        .filter(or_(Notification.user_id == claims.user_id, Notification.role_target.is_not(None)))
        .order_by(Notification.created_at.desc())
    )
    # role_target is a JSON list, so the role match is done here rather than in SQL.
    visible = []
    for notification in candidates:
        if _visible_to(notification, claims):
            visible.append(notification)
            if len(visible) == FEED_LIMIT:
                break
    return visible


def mark_read(db: Session, notification_id: str, claims: TokenClaims) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None or not _visible_to(notification, claims):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    notification.is_read = True
    commit(db)
    db.refresh(notification)
    return notification


def create_notification(db: Session, payload: NotificationCreate, *, actor_id: str) -> Notification:
    if payload.user_id:
        get_or_404(db, User, payload.user_id, "User not found")
    notification = Notification(
        user_id=payload.user_id,
        role_target=[role.value for role in payload.role_target] if payload.role_target else None,
        title=payload.title,
        message=payload.message,
        created_by=actor_id,
    )
    db.add(notification)
    commit(db)
    db.refresh(notification)
    logger.info(f"Notification {notification.id} created by {actor_id}")
    return notification

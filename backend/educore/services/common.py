import logging
from contextlib import contextmanager
from typing import Any, Optional, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def get_or_404(db: Session, model: type[ModelT], entity_id: str, message: str) -> ModelT:
    entity = db.get(model, entity_id)
    if entity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    return entity


DEFAULT_CONFLICT = "Record conflicts with existing data"


@contextmanager
def store_errors(db: Session, conflict_message: str = DEFAULT_CONFLICT):
    """Roll back and map store failures: constraint violations become a 409, other store errors a 400."""
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        logger.warning(f"Integrity error: {exc.orig}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=conflict_message) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Store error: {exc}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc.__cause__ or exc)) from exc


def commit(db: Session, conflict_message: str = DEFAULT_CONFLICT) -> None:
    with store_errors(db, conflict_message):
        db.commit()


def apply_changes(entity: Any, changes: dict[str, Any]) -> None:
    for field, value in changes.items():
        setattr(entity, field, value)
    if hasattr(entity, "updated_at"):
        entity.updated_at = utcnow()


def conditional_update(
    db: Session,
    model: type[ModelT],
    entity_id: str,
    expected_status: Any,
    values: dict[str, Any],
) -> Optional[ModelT]:
    """Update a row only while it still has ``expected_status``.

    The single ``UPDATE ... WHERE id = :id AND status = :expected`` is the only
    concurrency control for review workflows: of two racing transitions the
    second matches no row and gets ``None``. Nothing is committed here.
    """
    with store_errors(db):
        matched = (
            db.query(model)
            .filter(model.id == entity_id, model.status == expected_status)
            .update(values, synchronize_session=False)
        )
    if matched != 1:
        return None
    return db.get(model, entity_id, populate_existing=True)

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import ALL_ROLES, require_roles
from ..models import UserRole
from ..responses import ApiResponse
from ..schemas import TimetableSlotCreate, TimetableSlotOut, TimetableSlotUpdate, TokenClaims
from ..services import timetable as service

router = APIRouter(prefix="/api/timetable", tags=["Timetable"])

_admin_only = require_roles(UserRole.ADMIN)


@router.get("/class/{class_id}", response_model=ApiResponse[list[TimetableSlotOut]])
def class_timetable(
    class_id: str,
    db: Session = Depends(get_db_session),
    _: TokenClaims = Depends(require_roles(*ALL_ROLES)),
):
    slots = service.list_class_timetable(db, class_id)
    return ApiResponse[list[TimetableSlotOut]](data=[TimetableSlotOut.model_validate(slot) for slot in slots])


@router.post("", response_model=ApiResponse[TimetableSlotOut], status_code=status.HTTP_201_CREATED)
def create_slot(
    payload: TimetableSlotCreate,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_admin_only),
):
    slot = service.create_slot(db, payload, actor_id=claims.user_id)
    return ApiResponse[TimetableSlotOut](data=TimetableSlotOut.model_validate(slot), message="Slot created")


@router.put("/{slot_id}", response_model=ApiResponse[TimetableSlotOut])
def update_slot(
    slot_id: str,
    payload: TimetableSlotUpdate,
    db: Session = Depends(get_db_session),
    claims: TokenClaims = Depends(_admin_only),
):
    slot = service.update_slot(db, slot_id, payload, actor_id=claims.user_id)
    return ApiResponse[TimetableSlotOut](data=TimetableSlotOut.model_validate(slot), message="Slot updated")


@router.delete("/{slot_id}", response_model=ApiResponse[None])
def delete_slot(slot_id: str, db: Session = Depends(get_db_session), _: TokenClaims = Depends(_admin_only)):
    service.delete_slot(db, slot_id)
    return ApiResponse[None](message="Slot deleted")

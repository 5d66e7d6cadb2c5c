import logging

from sqlalchemy.orm import Session

from ..models import SchoolClass, Teacher, TimetableSlot, Weekday, utcnow
from ..schemas import TimetableSlotCreate, TimetableSlotUpdate, dump_changes
from ..responses import PayloadValidationError
from .common import apply_changes, commit, get_or_404

logger = logging.getLogger(__name__)

WEEKDAY_ORDER = {day: index for index, day in enumerate(Weekday)}


def list_class_timetable(db: Session, class_id: str) -> list[TimetableSlot]:
    slots = db.query(TimetableSlot).filter(TimetableSlot.class_id == class_id).all()
    return sorted(slots, key=lambda slot: (WEEKDAY_ORDER[slot.day_of_week], slot.period_number))


def _check_references(db: Session, *, class_id=None, teacher_id=None) -> None:
    if class_id:
        get_or_404(db, SchoolClass, class_id, "Class not found")
    if teacher_id:
        get_or_404(db, Teacher, teacher_id, "Teacher not found")


def create_slot(db: Session, payload: TimetableSlotCreate, *, actor_id: str) -> TimetableSlot:
    _check_references(db, class_id=payload.class_id, teacher_id=payload.teacher_id)
    slot = TimetableSlot(**payload.model_dump(), updated_by=actor_id, updated_at=utcnow())
    db.add(slot)
    commit(db)
    db.refresh(slot)
    logger.info(f"Timetable slot {slot.id} created for class {slot.class_id}")
    return slot


def update_slot(db: Session, slot_id: str, payload: TimetableSlotUpdate, *, actor_id: str) -> TimetableSlot:
    slot = get_or_404(db, TimetableSlot, slot_id, "Timetable slot not found")
    changes = dump_changes(payload)
    _check_references(db, class_id=changes.get("class_id"), teacher_id=changes.get("teacher_id"))

    start_time = changes.get("start_time") or slot.start_time
    end_time = changes.get("end_time") or slot.end_time
    if end_time <= start_time:
        raise PayloadValidationError({"end_time": ["end_time must be after start_time"]})

    apply_changes(slot, changes)
    slot.updated_by = actor_id
    commit(db)
    db.refresh(slot)
    return slot


def delete_slot(db: Session, slot_id: str) -> None:
    slot = get_or_404(db, TimetableSlot, slot_id, "Timetable slot not found")
    db.delete(slot)
    commit(db)
    logger.info(f"Timetable slot {slot_id} deleted")

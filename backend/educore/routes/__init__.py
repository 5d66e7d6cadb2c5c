from fastapi import APIRouter

from . import (
    admissions,
    attendance,
    auth,
    departments,
    fees,
    health,
    lesson_plans,
    marks,
    notifications,
    students,
    teachers,
    timetable,
)

router = APIRouter()
for module in (
    auth,
    students,
    teachers,
    fees,
    admissions,
    timetable,
    lesson_plans,
    departments,
    attendance,
    marks,
    notifications,
):
    router.include_router(module.router)

__all__ = ["router", "health"]

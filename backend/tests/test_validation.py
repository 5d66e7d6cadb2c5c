import pytest

from backend.educore import seed
from backend.educore.models import UserRole
from backend.educore.responses import PayloadValidationError, validate_payload
from backend.educore.schemas import AttendanceBulkRequest, MarkCreate, TimetableSlotCreate

pytestmark = pytest.mark.anyio

MARK = {
    "student_id": seed.STUDENT_1_ID,
    "class_id": seed.CLASS_5A_ID,
    "subject": "Mathematics",
    "exam_type": "ia1",
    "max_marks": 25,
    "marks_obtained": 20,
    "academic_year": "2025-26",
}


async def test_all_field_errors_are_collected():
    with pytest.raises(PayloadValidationError) as excinfo:
        validate_payload(MarkCreate, {**MARK, "exam_type": "quiz", "max_marks": 0, "academic_year": "25-26"})
    assert set(excinfo.value.errors) == {"exam_type", "max_marks", "academic_year"}


async def test_cross_field_rule_runs_after_field_checks():
    with pytest.raises(PayloadValidationError) as excinfo:
        validate_payload(MarkCreate, {**MARK, "marks_obtained": 30})
    assert excinfo.value.errors == {"marks_obtained": ["marks_obtained cannot exceed max_marks"]}

    # A bad field short-circuits the cross-field check.
    with pytest.raises(PayloadValidationError) as excinfo:
        validate_payload(MarkCreate, {**MARK, "marks_obtained": 30, "subject": ""})
    assert set(excinfo.value.errors) == {"subject"}


async def test_input_is_not_mutated_and_numbers_are_coerced():
    raw = {**MARK, "max_marks": "25", "marks_obtained": "20"}
    snapshot = dict(raw)
    mark = validate_payload(MarkCreate, raw)
    assert raw == snapshot
    assert mark.max_marks == 25.0


async def test_timetable_end_must_follow_start():
    with pytest.raises(PayloadValidationError) as excinfo:
        validate_payload(
            TimetableSlotCreate,
            {
                "class_id": seed.CLASS_5A_ID,
                "day_of_week": "Monday",
                "period_number": 1,
                "start_time": "09:45",
                "end_time": "09:00",
                "subject": "Mathematics",
            },
        )
    assert set(excinfo.value.errors) == {"end_time"}


async def test_marks_over_http(client, auth):
    teacher = auth(UserRole.TEACHER)
    too_many = await client.post("/api/marks", json={**MARK, "marks_obtained": 26}, headers=teacher)
    assert too_many.status_code == 400
    assert too_many.json()["errors"] == {"marks_obtained": ["marks_obtained cannot exceed max_marks"]}

    created = await client.post("/api/marks", json=MARK, headers=teacher)
    assert created.status_code == 201
    mark_id = created.json()["data"]["id"]

    # The stored maximum applies when the update does not send one.
    over_stored_max = await client.put(f"/api/marks/{mark_id}", json={"marks_obtained": 30}, headers=teacher)
    assert over_stored_max.status_code == 400
    assert "marks_obtained" in over_stored_max.json()["errors"]

    raised_max = await client.put(
        f"/api/marks/{mark_id}", json={"marks_obtained": 30, "max_marks": 50}, headers=teacher
    )
    assert raised_max.status_code == 200
    assert raised_max.json()["data"]["max_marks"] == 50

    listed = await client.get(
        f"/api/marks/student/{seed.STUDENT_1_ID}", params={"academic_year": "2025-26"}, headers=auth(UserRole.HOD)
    )
    assert [mark["marks_obtained"] for mark in listed.json()["data"]] == [30]


async def test_dates_and_times_are_bounded():
    slot = {
        "class_id": seed.CLASS_5A_ID,
        "day_of_week": "Monday",
        "period_number": 1,
        "start_time": "09:00",
        "end_time": "09:45",
        "subject": "Mathematics",
    }
    for start, end in (("99:00", "99:99"), ("24:00", "24:30"), ("9:00", "9:45")):
        with pytest.raises(PayloadValidationError) as excinfo:
            validate_payload(TimetableSlotCreate, {**slot, "start_time": start, "end_time": end})
        assert set(excinfo.value.errors) == {"start_time", "end_time"}

    assert validate_payload(TimetableSlotCreate, {**slot, "start_time": "23:00", "end_time": "23:59"}).end_time == "23:59"

    for day in ("2025-13-01", "2025-00-10", "2025-02-32"):
        with pytest.raises(PayloadValidationError) as excinfo:
            validate_payload(AttendanceBulkRequest, {"class_id": seed.CLASS_5A_ID, "date": day, "records": []})
        assert "date" in excinfo.value.errors

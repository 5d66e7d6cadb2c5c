import pytest

from backend.educore import seed
from backend.educore.models import User, UserRole

pytestmark = pytest.mark.anyio

NEW_TEACHER = {
    "name": "Ravi Kumar",
    "email": "ravi.kumar@educore.school",
    "password": "securepass1",
    "department_id": seed.DEPT_SCIENCE_ID,
    "employee_id": "EMP002",
    "subjects": ["Physics"],
    "joining_date": "2024-06-01",
}


async def test_student_crud(client, auth):
    admin = auth(UserRole.ADMIN)
    payload = {
        "roll_number": 3,
        "first_name": "Ira",
        "last_name": "Menon",
        "date_of_birth": "2014-11-30",
        "gender": "female",
        "class_id": seed.CLASS_5A_ID,
        "parent_name": "Anil Menon",
        "parent_email": "ANIL@Example.com",
        "parent_phone": "9844455566",
    }
    created = await client.post("/api/students", json=payload, headers=admin)
    assert created.status_code == 201
    student = created.json()["data"]
    assert student["parent_email"] == "anil@example.com"

    updated = await client.put(f"/api/students/{student['id']}", json={"last_name": "Menon-Rao"}, headers=admin)
    assert updated.json()["data"]["last_name"] == "Menon-Rao"
    assert updated.json()["data"]["first_name"] == "Ira"

    by_class = await client.get(f"/api/students/class/{seed.CLASS_5A_ID}", headers=auth(UserRole.TEACHER))
    assert [s["roll_number"] for s in by_class.json()["data"]] == [1, 2, 3]

    missing = await client.get("/api/students/00000000-0000-0000-0004-000000000099", headers=admin)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Student not found"


async def test_teacher_lifecycle(client, auth, db):
    admin = auth(UserRole.ADMIN)
    created = await client.post("/api/teachers", json=NEW_TEACHER, headers=admin)
    assert created.status_code == 201, created.text
    teacher = created.json()["data"]
    assert teacher["user"]["email"] == NEW_TEACHER["email"]
    assert teacher["department"]["name"] == "Science"

    duplicate = await client.post("/api/teachers", json={**NEW_TEACHER, "employee_id": "EMP003"}, headers=admin)
    assert duplicate.status_code == 409

    updated = await client.put(
        f"/api/teachers/{teacher['id']}", json={"name": "Ravi K.", "phone": "9000000000"}, headers=admin
    )
    assert updated.json()["data"]["user"]["name"] == "Ravi K."
    assert updated.json()["data"]["phone"] == "9000000000"

    by_department = await client.get(
        f"/api/teachers/department/{seed.DEPT_SCIENCE_ID}", headers=auth(UserRole.PRINCIPAL)
    )
    assert [t["id"] for t in by_department.json()["data"]] == [teacher["id"]]

    removed = await client.delete(f"/api/teachers/{teacher['id']}", headers=admin)
    assert removed.json()["data"]["is_active"] is False
    assert db.get(User, teacher["user_id"]).is_active is False


async def test_duplicate_employee_id_leaves_no_orphan_account(client, auth, db):
    admin = auth(UserRole.ADMIN)
    clash = {**NEW_TEACHER, "email": "someone.else@educore.school", "employee_id": "EMP001"}
    r = await client.post("/api/teachers", json=clash, headers=admin)
    assert r.status_code == 409
    assert db.query(User).filter(User.email == clash["email"]).count() == 0


async def test_teacher_detail_lists_assignments(client, auth):
    r = await client.get(f"/api/teachers/{seed.TEACHER_ID}", headers=auth(UserRole.HOD))
    assignments = r.json()["data"]["assignments"]
    assert [(a["class_id"], a["subject"]) for a in assignments] == [(seed.CLASS_5A_ID, "Mathematics")]


async def test_assign_hod(client, auth, db):
    principal = auth(UserRole.PRINCIPAL)
    wrong_role = await client.put(
        f"/api/departments/{seed.DEPT_SCIENCE_ID}/hod", json={"hod_user_id": seed.TEACHER_USER_ID}, headers=principal
    )
    assert wrong_role.status_code == 400
    assert wrong_role.json()["message"] == "User must have the HOD role"

    ok = await client.put(
        f"/api/departments/{seed.DEPT_SCIENCE_ID}/hod", json={"hod_user_id": seed.HOD_ID}, headers=principal
    )
    assert ok.status_code == 200
    assert ok.json()["data"]["hod"]["id"] == seed.HOD_ID
    assert db.get(User, seed.HOD_ID).department_id == seed.DEPT_SCIENCE_ID


async def test_assign_teacher_is_an_upsert(client, auth):
    hod = auth(UserRole.HOD)
    body = {"teacher_id": seed.TEACHER_ID, "class_id": seed.CLASS_6A_ID, "subject": "Mathematics"}
    first = await client.post(f"/api/departments/{seed.DEPT_MATH_ID}/teachers", json=body, headers=hod)
    second = await client.post(f"/api/departments/{seed.DEPT_MATH_ID}/teachers", json=body, headers=hod)
    assert first.status_code == second.status_code == 201
    assert first.json()["data"]["id"] == second.json()["data"]["id"]


async def test_hod_cannot_assign_other_departments_teachers(client, auth):
    created = await client.post("/api/teachers", json=NEW_TEACHER, headers=auth(UserRole.ADMIN))
    body = {"teacher_id": created.json()["data"]["id"], "class_id": seed.CLASS_6A_ID, "subject": "Physics"}
    r = await client.post(f"/api/departments/{seed.DEPT_SCIENCE_ID}/teachers", json=body, headers=auth(UserRole.HOD))
    assert r.status_code == 403
    assert r.json()["message"] == "Teacher does not belong to your department"


async def test_timetable_is_ordered_by_weekday_then_period(client, auth):
    admin = auth(UserRole.ADMIN)
    slots = [("Tuesday", 1, "09:00", "09:45"), ("Monday", 2, "09:45", "10:30"), ("Monday", 1, "09:00", "09:45")]
    for day, period, start, end in slots:
        r = await client.post(
            "/api/timetable",
            json={
                "class_id": seed.CLASS_5A_ID,
                "day_of_week": day,
                "period_number": period,
                "start_time": start,
                "end_time": end,
                "subject": "Mathematics",
                "teacher_id": seed.TEACHER_ID,
            },
            headers=admin,
        )
        assert r.status_code == 201, r.text

    listed = await client.get(f"/api/timetable/class/{seed.CLASS_5A_ID}", headers=auth(UserRole.TEACHER))
    order = [(slot["day_of_week"], slot["period_number"]) for slot in listed.json()["data"]]
    assert order == [("Monday", 1), ("Monday", 2), ("Tuesday", 1)]

    slot_id = listed.json()["data"][0]["id"]
    bad_update = await client.put(f"/api/timetable/{slot_id}", json={"end_time": "08:30"}, headers=admin)
    assert bad_update.status_code == 400
    assert "end_time" in bad_update.json()["errors"]

    assert (await client.delete(f"/api/timetable/{slot_id}", headers=admin)).status_code == 200
    assert (await client.delete(f"/api/timetable/{slot_id}", headers=admin)).status_code == 404


async def test_notifications_by_user_and_role(client, auth):
    admin = auth(UserRole.ADMIN)
    broadcast = await client.post(
        "/api/notifications",
        json={"title": "Staff meeting", "message": "Friday 3pm", "role_target": ["teacher"]},
        headers=admin,
    )
    direct = await client.post(
        "/api/notifications",
        json={"title": "Plans due", "message": "Submit this week", "user_id": seed.HOD_ID},
        headers=admin,
    )
    assert broadcast.status_code == direct.status_code == 201

    teacher_feed = (await client.get("/api/notifications", headers=auth(UserRole.TEACHER))).json()["data"]
    hod_feed = (await client.get("/api/notifications", headers=auth(UserRole.HOD))).json()["data"]
    assert [n["title"] for n in teacher_feed] == ["Staff meeting"]
    assert [n["title"] for n in hod_feed] == ["Plans due"]

    broadcast_id = broadcast.json()["data"]["id"]
    hidden = await client.patch(f"/api/notifications/{broadcast_id}/read", headers=auth(UserRole.HOD))
    assert hidden.status_code == 404
    read = await client.patch(f"/api/notifications/{broadcast_id}/read", headers=auth(UserRole.TEACHER))
    assert read.json()["data"]["is_read"] is True

    no_recipient = await client.post("/api/notifications", json={"title": "x", "message": "y"}, headers=admin)
    assert no_recipient.status_code == 400
    assert "user_id" in no_recipient.json()["errors"]

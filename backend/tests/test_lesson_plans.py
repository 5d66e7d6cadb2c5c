import pytest

from backend.educore import seed
from backend.educore.models import UserRole
from backend.educore.schemas import TokenClaims
from backend.educore.security import create_access_token

pytestmark = pytest.mark.anyio

PLAN = {
    "class_id": seed.CLASS_5A_ID,
    "subject": "Mathematics",
    "date": "2025-08-04",
    "topic": "Fractions",
    "objectives": "Add fractions with like denominators",
    "activities": "Pizza slices exercise",
}


async def _submit(client, auth) -> dict:
    r = await client.post("/api/lesson-plans", json=PLAN, headers=auth(UserRole.TEACHER))
    assert r.status_code == 201, r.text
    return r.json()["data"]


async def test_approval_is_one_way(client, auth):
    plan = await _submit(client, auth)
    assert plan["status"] == "pending"
    hod = auth(UserRole.HOD)

    approved = await client.patch(f"/api/lesson-plans/{plan['id']}/approve", headers=hod)
    assert approved.status_code == 200
    assert approved.json()["data"]["status"] == "approved"
    assert approved.json()["data"]["reviewed_by"] == seed.HOD_ID

    again = await client.patch(f"/api/lesson-plans/{plan['id']}/approve", headers=hod)
    assert again.status_code == 404
    assert again.json()["message"] == "Lesson plan not found or already reviewed"

    reject = await client.patch(
        f"/api/lesson-plans/{plan['id']}/reject", json={"hod_remarks": "Too late"}, headers=hod
    )
    assert reject.status_code == 404

    edit = await client.put(f"/api/lesson-plans/{plan['id']}", json={"topic": "Decimals"}, headers=auth(UserRole.TEACHER))
    assert edit.status_code == 404
    assert edit.json()["message"] == "Lesson plan not found or not editable"


async def test_rejection_needs_remarks(client, auth):
    plan = await _submit(client, auth)
    hod = auth(UserRole.HOD)

    blank = await client.patch(f"/api/lesson-plans/{plan['id']}/reject", json={"hod_remarks": "   "}, headers=hod)
    assert blank.status_code == 400
    assert "hod_remarks" in blank.json()["errors"]

    rejected = await client.patch(
        f"/api/lesson-plans/{plan['id']}/reject", json={"hod_remarks": " Add an assessment "}, headers=hod
    )
    assert rejected.status_code == 200
    assert rejected.json()["data"]["status"] == "rejected"
    assert rejected.json()["data"]["hod_remarks"] == "Add an assessment"


async def test_pending_plan_can_be_edited_by_its_author(client, auth):
    plan = await _submit(client, auth)
    r = await client.put(f"/api/lesson-plans/{plan['id']}", json={"topic": "Decimals"}, headers=auth(UserRole.TEACHER))
    assert r.status_code == 200
    assert r.json()["data"]["topic"] == "Decimals"
    assert r.json()["data"]["status"] == "pending"


async def test_listing_and_pending_count(client, auth):
    await _submit(client, auth)
    await _submit(client, auth)

    mine = await client.get("/api/lesson-plans", headers=auth(UserRole.TEACHER))
    assert mine.json()["meta"]["total"] == 2

    department = await client.get("/api/lesson-plans", params={"status": "pending"}, headers=auth(UserRole.HOD))
    assert department.json()["meta"]["total"] == 2

    count = await client.get("/api/lesson-plans/pending-count", headers=auth(UserRole.HOD))
    assert count.json()["data"] == {"department_id": seed.DEPT_MATH_ID, "pending": 2}


async def test_only_hod_reviews(client, auth):
    plan = await _submit(client, auth)
    r = await client.patch(f"/api/lesson-plans/{plan['id']}/approve", headers=auth(UserRole.PRINCIPAL))
    assert r.status_code == 403


async def test_single_plan_is_scoped_like_the_list(client, auth, settings):
    plan = await _submit(client, auth)
    url = f"/api/lesson-plans/{plan['id']}"

    for role in (UserRole.TEACHER, UserRole.HOD, UserRole.PRINCIPAL):
        r = await client.get(url, headers=auth(role))
        assert r.status_code == 200, role

    other_teacher = {
        "name": "Ravi Kumar",
        "email": "ravi.kumar@educore.school",
        "password": "securepass1",
        "department_id": seed.DEPT_SCIENCE_ID,
        "employee_id": "EMP002",
        "subjects": ["Physics"],
        "joining_date": "2024-06-01",
    }
    created = await client.post("/api/teachers", json=other_teacher, headers=auth(UserRole.ADMIN))
    assert created.status_code == 201
    login = await client.post(
        "/api/auth/login",
        json={"email": other_teacher["email"], "password": other_teacher["password"], "role": "teacher"},
    )
    token = login.json()["data"]["token"]
    r = await client.get(url, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 404
    assert r.json()["message"] == "Lesson plan not found"

    science_hod = TokenClaims(
        user_id=seed.HOD_ID, name="Head of Science", role=UserRole.HOD, department_id=seed.DEPT_SCIENCE_ID
    )
    r = await client.get(url, headers={"Authorization": f"Bearer {create_access_token(science_hod, settings)}"})
    assert r.status_code == 404

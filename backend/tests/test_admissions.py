import pytest
from fastapi import HTTPException

from backend.educore import seed
from backend.educore.models import Admission, ReviewStatus, Student, UserRole
from backend.educore.services.admissions import approve_admission

pytestmark = pytest.mark.anyio

APPLICATION = {
    "first_name": "Kabir",
    "last_name": "Rao",
    "date_of_birth": "2015-02-20",
    "gender": "male",
    "grade_applying": 5,
    "parent_name": "Nisha Rao",
    "parent_email": "",
    "parent_phone": "9833344455",
}


async def _apply(client, admin) -> dict:
    r = await client.post("/api/admissions", json=APPLICATION, headers=admin)
    assert r.status_code == 201, r.text
    return r.json()["data"]


async def test_second_approval_fails_and_creates_no_student(client, auth, db):
    admin = auth(UserRole.ADMIN)
    admission = await _apply(client, admin)
    assert admission["status"] == "pending"

    first = await client.patch(
        f"/api/admissions/{admission['id']}/approve", json={"class_id": seed.CLASS_5A_ID}, headers=admin
    )
    second = await client.patch(
        f"/api/admissions/{admission['id']}/approve", json={"class_id": seed.CLASS_5A_ID}, headers=admin
    )

    assert first.status_code == 200
    student = first.json()["data"]["student"]
    assert student["roll_number"] == 3
    assert student["class_id"] == seed.CLASS_5A_ID
    assert second.status_code == 404
    assert second.json()["message"] == "Admission not found or already processed"
    assert db.query(Student).filter(Student.first_name == "Kabir").count() == 1


async def test_approval_from_a_second_session_enrols_nobody(app, client, auth):
    admission = await _apply(client, auth(UserRole.ADMIN))
    first_session = app.state.session_factory()
    try:
        approve_admission(first_session, admission["id"], class_id=seed.CLASS_6A_ID, actor_id=seed.ADMIN_ID)
    finally:
        first_session.close()

    second_session = app.state.session_factory()
    try:
        with pytest.raises(HTTPException) as excinfo:
            approve_admission(second_session, admission["id"], class_id=seed.CLASS_6A_ID, actor_id=seed.ADMIN_ID)
        assert excinfo.value.status_code == 404
        assert second_session.query(Student).filter(Student.class_id == seed.CLASS_6A_ID).count() == 1
    finally:
        second_session.close()


async def test_rejected_application_cannot_be_approved(client, auth, db):
    admin = auth(UserRole.ADMIN)
    admission = await _apply(client, admin)

    rejected = await client.patch(f"/api/admissions/{admission['id']}/reject", headers=admin)
    assert rejected.json()["data"]["status"] == "rejected"

    r = await client.patch(
        f"/api/admissions/{admission['id']}/approve", json={"class_id": seed.CLASS_5A_ID}, headers=admin
    )
    assert r.status_code == 404
    assert db.get(Admission, admission["id"]).status == ReviewStatus.REJECTED


async def test_list_filters_by_status(client, auth):
    admin = auth(UserRole.ADMIN)
    await _apply(client, admin)
    other = await _apply(client, admin)
    await client.patch(f"/api/admissions/{other['id']}/reject", headers=admin)

    r = await client.get("/api/admissions", params={"status": "pending"}, headers=admin)
    assert r.json()["meta"]["total"] == 1


async def test_approval_requires_a_class(client, auth):
    admin = auth(UserRole.ADMIN)
    admission = await _apply(client, admin)
    r = await client.patch(f"/api/admissions/{admission['id']}/approve", json={}, headers=admin)
    assert r.status_code == 400
    assert "class_id" in r.json()["errors"]

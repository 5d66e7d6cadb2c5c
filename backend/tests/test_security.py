from datetime import datetime, timedelta, timezone

import jwt

from backend.educore.models import UserRole
from backend.educore.schemas import TokenClaims
from backend.educore.security import create_access_token, hash_password, verify_access_token, verify_password

from .conftest import TEST_SECRET


def _claims(**overrides) -> TokenClaims:
    values = {"user_id": "user-1", "name": "Asha", "role": UserRole.HOD, "department_id": "dept-1"}
    values.update(overrides)
    return TokenClaims(**values)


def test_round_trip_preserves_claims(settings):
    token = create_access_token(_claims(class_ids=("c-1", "c-2")), settings)
    claims = verify_access_token(token, settings)
    assert claims is not None
    assert claims.user_id == "user-1"
    assert claims.role == UserRole.HOD
    assert claims.department_id == "dept-1"
    assert claims.class_ids == ("c-1", "c-2")


def test_two_tokens_for_the_same_claims_differ(settings):
    assert create_access_token(_claims(), settings) != create_access_token(_claims(), settings)


def test_token_signed_with_another_secret_is_rejected(settings):
    forged = jwt.encode(
        {"sub": "user-1", "name": "x", "role": "admin", "iat": 0, "exp": 4_102_444_800},
        "some-other-secret-that-is-long-enough-too",
        algorithm="HS256",
    )
    assert verify_access_token(forged, settings) is None


def test_expired_token_is_rejected(settings):
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    expired = jwt.encode(
        {"sub": "user-1", "name": "x", "role": "admin", "iat": issued, "exp": issued + timedelta(hours=1)},
        TEST_SECRET,
        algorithm="HS256",
    )
    assert verify_access_token(expired, settings) is None


def test_unknown_role_and_missing_claims_are_rejected(settings):
    now = int(datetime.now(timezone.utc).timestamp())
    unknown_role = jwt.encode(
        {"sub": "u", "name": "x", "role": "superuser", "iat": now, "exp": now + 60}, TEST_SECRET, algorithm="HS256"
    )
    no_exp = jwt.encode({"sub": "u", "name": "x", "role": "admin", "iat": now}, TEST_SECRET, algorithm="HS256")
    assert verify_access_token(unknown_role, settings) is None
    assert verify_access_token(no_exp, settings) is None
    assert verify_access_token("not-a-token", settings) is None


def test_password_hashing():
    hashed = hash_password("correct horse", rounds=4)
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
    assert not verify_password("correct horse", "not-a-bcrypt-hash")

"""
Shared fixtures: a fresh in-memory database per test, seeded with the demo
school, plus helpers that mint tokens for the seed accounts.
"""
from datetime import timedelta

import httpx
import pytest
from httpx import ASGITransport

from backend.educore import init_educore_module, seed
from backend.educore.config import Settings
from backend.educore.models import UserRole
from backend.educore.schemas import TokenClaims
from backend.educore.security import create_access_token
from backend.main import create_app

TEST_SECRET = "test-secret-that-is-at-least-32-characters"

SEED_IDENTITIES = {
    UserRole.ADMIN: (seed.ADMIN_ID, None, ()),
    UserRole.PRINCIPAL: (seed.PRINCIPAL_ID, None, ()),
    UserRole.HOD: (seed.HOD_ID, seed.DEPT_MATH_ID, ()),
    UserRole.TEACHER: (seed.TEACHER_USER_ID, seed.DEPT_MATH_ID, (seed.CLASS_5A_ID,)),
}


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "jwt_secret": TEST_SECRET,
        "jwt_expires_in": timedelta(hours=1),
        "environment": "test",
        "database_url": "sqlite://",
        "upload_dir": str(tmp_path / "uploads"),
        "rate_limit_max": 10_000,
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


def build_app(settings: Settings):
    # ASGITransport does not run the lifespan, so the schema and seed are set up here.
    app = create_app(settings)
    init_educore_module(app.state.engine, settings)
    return app


@pytest.fixture
def app(settings):
    application = build_app(settings)
    yield application
    application.state.engine.dispose()


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def token_for(settings):
    def _token(role: UserRole) -> str:
        user_id, department_id, class_ids = SEED_IDENTITIES[role]
        claims = TokenClaims(
            user_id=user_id,
            name=f"Seed {role.value}",
            role=role,
            department_id=department_id,
            class_ids=class_ids,
        )
        return create_access_token(claims, settings)

    return _token


@pytest.fixture
def auth(token_for):
    def _headers(role: UserRole) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(role)}"}

    return _headers

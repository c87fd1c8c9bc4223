import asyncio
import json
import os
import tempfile
from pathlib import Path

# Настройки читаются при импорте fintrack, поэтому окружение задаем до него
_TEST_DIR = Path(tempfile.mkdtemp(prefix="fintrack-tests-"))
os.environ["DB"] = json.dumps({
    "DB_URL": f"sqlite+aiosqlite:///{_TEST_DIR / 'test.db'}",
    "DB_PASSWORD": "test",
})
os.environ["SECURITY"] = json.dumps({
    "JWT_SECRET_KEY": "test-secret-key-for-fintrack-quiz",
    "RATE_LIMIT_ENABLED": False,
})

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from fintrack.core.database import db_helper
from fintrack.core.schemas.auth import UserCreate
from fintrack.core.security import get_password_hash
from fintrack.core.utils import fallback_store
from fintrack.models import Base
from fintrack.repositories.user_repository import UserRepository

TEST_PASSWORD = "Budget!Saver2026"


async def reset_schema():
    async with db_helper.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest_asyncio.fixture
async def db_schema():
    """Чистая схема для async-тестов сервисов и репозиториев"""
    await reset_schema()
    fallback_store.clear()
    yield
    fallback_store.clear()


@pytest_asyncio.fixture
async def session(db_schema):
    async with db_helper.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(session):
    repo = UserRepository(session)
    return await repo.create(
        UserCreate(email="saver@fintrack.io", password=TEST_PASSWORD, name="Saver"),
        get_password_hash(TEST_PASSWORD),
    )


@pytest_asyncio.fixture
async def user_id(user):
    """id читается сразу: после rollback в тесте объект user уже просрочен"""
    return user.id


@pytest.fixture
def client():
    """TestClient поверх чистой схемы"""
    asyncio.run(reset_schema())
    fallback_store.clear()

    from main import app

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    fallback_store.clear()


def _register_and_login(client, email="alice@fintrack.io", password=TEST_PASSWORD):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "name": "Alice"},
    )
    assert response.status_code == 201, response.text

    response = client.post(
        "/api/v1/auth/login",
        data={"username": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def register_and_login():
    """Регистрирует пользователя и возвращает пару токенов"""
    return _register_and_login


@pytest.fixture
def auth_headers(client):
    tokens = _register_and_login(client)
    return {"Authorization": f"Bearer {tokens['access_token']}"}

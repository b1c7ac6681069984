from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from curriculopro.core.auth import TokenData, get_current_user, get_optional_user
from curriculopro.core.database import get_db
from curriculopro.main import app


class FakeSession:
    """Stands in for AsyncSession in route tests; services are monkeypatched."""

    def __init__(self):
        self.rollbacks = 0

    async def rollback(self):
        self.rollbacks += 1

    async def commit(self):
        pass


@pytest.fixture
def user():
    return TokenData(user_id=uuid4(), email="maria@example.com")


@pytest.fixture
def profile(user):
    return SimpleNamespace(
        id=user.user_id,
        email=user.email,
        name="Maria Souza",
        plan="pack3",
        user_type="cliente",
        email_verified=True,
        last_analysis=None,
    )


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def anon_client(session):
    async def _db():
        yield session

    app.dependency_overrides[get_db] = _db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client(anon_client, user):
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_optional_user] = lambda: user
    return anon_client

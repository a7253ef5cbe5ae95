"""
Shared fixtures.

Route tests run against the real FastAPI app with the database and auth
dependencies overridden; no Postgres, Redis or network access is needed.
"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from budget_api.dependencies import get_db, get_optional_user
from budget_api.main import app
from budget_api.models import User


class FakeResult:
    def __init__(self, rows=None, scalar=None, rowcount=None):
        self._rows = list(rows or [])
        self._scalar = scalar
        self.rowcount = rowcount

    def scalars(self):
        return self

    def unique(self):
        return self

    def all(self):
        return self._rows

    def first(self):
        return self._rows[0] if self._rows else None

    def scalar_one_or_none(self):
        return self._scalar

    def scalar_one(self):
        return self._scalar


class FakeSession:
    """Just enough of AsyncSession for service functions that are mostly pure."""

    def __init__(self, results=None, objects=None):
        self.results = list(results or [])
        self.objects = dict(objects or {})
        self.added = []
        self.executed = []
        self.commits = 0
        self.rollbacks = 0

    def add(self, obj):
        self.added.append(obj)

    async def execute(self, statement):
        self.executed.append(statement)
        return self.results.pop(0) if self.results else FakeResult()

    async def get(self, model, ident):
        return self.objects.get(ident)

    async def flush(self):
        pass

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1

    async def refresh(self, obj):
        if getattr(obj, "created_at", "missing") is None:
            obj.created_at = datetime.now(timezone.utc)


def make_user(user_id="user-1", is_global_admin=False, **kwargs):
    return User(
        id=user_id,
        name=kwargs.pop("name", "Alex"),
        email=kwargs.pop("email", "alex@example.com"),
        is_global_admin=is_global_admin,
        email_verified=kwargs.pop("email_verified", False),
        onboarding_completed=kwargs.pop("onboarding_completed", False),
        **kwargs
    )


@pytest.fixture
def fake_db():
    return FakeSession()


@pytest.fixture
def client(fake_db):
    """TestClient for an anonymous caller; swap the user with ``login``."""
    async def override_db():
        yield fake_db

    async def anonymous():
        return None

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_optional_user] = anonymous
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    def _login(user):
        async def current():
            return user
        app.dependency_overrides[get_optional_user] = current
        return user
    return _login

import os

# must be set before anything imports app.core.config
os.environ["DB_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient

from app.db import SessionLocal, engine
from app.domains.auth.repository.auth_repository import AuthRepository
from app.main import app
from app.models import Base
from app.models.user import UserRole

from tests.helpers import PASSWORD, login


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_client():
    """A fresh client per browser; each keeps its own session cookie."""
    def _make():
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def make_user(db):
    def _make(email="worker@example.com", name="Site Worker", role=UserRole.EMPLOYEE,
              enforced=False, password=PASSWORD):
        return AuthRepository(db).create_user(
            name=name,
            email=email,
            password=password,
            role=role,
            single_device_login_enabled=enforced,
        )
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", name="Admin", role=UserRole.ADMIN)


@pytest.fixture
def logged_in(make_client, make_user):
    """Client with an employee session."""
    user = make_user()
    c = make_client()
    assert login(c, user.email).status_code == 303
    c.user = user
    return c

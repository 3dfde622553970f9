"""Pytest configuration: in-memory SQLite database, temp upload dir and FastAPI TestClient."""

from __future__ import annotations

import os
import shutil
import tempfile
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Override env BEFORE importing app modules so Settings picks up test values.
os.environ.update(
    {
        "DATABASE_URL": "sqlite:///:memory:",
        "UPLOAD_DIR": tempfile.mkdtemp(prefix="agent-gallery-uploads-"),
        "JWT_SECRET": "test-secret-for-pytest",
        "RATE_LIMIT": "1000 per minute",
        "APP_ENV": "test",
        "API_BASE_URL": "http://testserver/api",
    }
)

from core import rate_limit  # noqa: E402
from core.config import settings  # noqa: E402
from core.database import Base, get_db  # noqa: E402
from core.security import hash_password, token_for  # noqa: E402
from main import app  # noqa: E402

# ── Force all models to register on Base.metadata ──────────────────
import models  # noqa: E402, F401
from models.user import User  # noqa: E402

# ── In-memory SQLite engine shared with the TestClient thread ──────

_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# SQLite doesn't enforce FK by default
@event.listens_for(_engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


_TestSession = sessionmaker(bind=_engine, class_=Session, expire_on_commit=False)


@pytest.fixture(autouse=True)
def _create_tables():
    """Create all tables before each test and drop after."""
    Base.metadata.create_all(bind=_engine)
    yield
    Base.metadata.drop_all(bind=_engine)


@pytest.fixture(autouse=True)
def _reset_rate_limit():
    rate_limit.storage.reset()
    yield


@pytest.fixture(autouse=True)
def upload_root() -> Generator[str, None, None]:
    """The directory mounted at /uploads, emptied after each test."""
    root = settings.upload_dir
    yield root
    shutil.rmtree(os.path.join(root, "projects"), ignore_errors=True)
    os.makedirs(os.path.join(root, "projects"), exist_ok=True)


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Yield a test DB session."""
    session = _TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the in-memory DB."""

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()


def make_user(db: Session, email: str, role: str = "user", password: str = "secret123", name: str = "Tester") -> User:
    user = User(email=email, password=hash_password(password), role=role, name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture()
def owner(db: Session) -> User:
    return make_user(db, "owner@example.com", name="Jane")


@pytest.fixture()
def other_user(db: Session) -> User:
    return make_user(db, "other@example.com", name="Bob")


@pytest.fixture()
def admin(db: Session) -> User:
    return make_user(db, "admin@example.com", role="admin", name="Admin")


@pytest.fixture()
def auth_headers(owner: User) -> dict:
    return bearer(owner)


@pytest.fixture()
def create_project(client: TestClient, auth_headers: dict):
    """Factory posting a project as ``owner``; returns the created JSON record."""

    def _create(headers: dict | None = None, files: dict | None = None, **fields) -> dict:
        data = {"projectName": "Bot", "projectDescription": "Does things"}
        data.update(fields)
        resp = client.post("/api/projects", data=data, files=files, headers=headers or auth_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create

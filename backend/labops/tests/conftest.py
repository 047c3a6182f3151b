import os
os.environ["LABOPS_TESTING"] = "1"
os.environ["LABOPS_DATABASE_URL"] = "sqlite:///./test.db"
os.environ.setdefault("LABOPS_JWT_SECRET", "test-secret")
import pytest
from fastapi.testclient import TestClient

import sys
from pathlib import Path
import uuid

sys.path.append(str(Path(__file__).resolve().parents[2]))

from labops import models, notify
from labops.auth import create_access_token, get_password_hash
from labops.config import Settings
from labops.database import Base
from labops.main import create_app

settings = Settings()
app = create_app(settings)
engine = app.state.engine
TestingSessionLocal = app.state.session_factory


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    notify.EMAIL_OUTBOX.clear()
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(role: str = "employee", *, email: str | None = None, password: str = "secret1", is_active: bool = True):
    """
    purpose: insert a user with the given role directly, bypassing first-user promotion
    outputs: models.User detached from the session
    """

    session = TestingSessionLocal()
    try:
        user = models.User(
            email=email or f"user-{uuid.uuid4()}@example.com",
            hashed_password=get_password_hash(password),
            first_name="Test",
            last_name=role.title(),
            role=role,
            is_active=is_active,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user
    finally:
        session.close()


def auth_headers(role: str = "employee", **kwargs):
    user = make_user(role, **kwargs)
    token = create_access_token(user, settings)
    return {"Authorization": f"Bearer {token}"}, user


def make_equipment(client, headers, **overrides):
    payload = {
        "equipment_reference": f"EQ-{uuid.uuid4().hex[:8]}",
        "equipment_type": "Air pump",
        "section": "Air Monitoring",
        "brand_model": "SKC AirChek",
    }
    payload.update(overrides)
    resp = client.post("/api/equipment", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()

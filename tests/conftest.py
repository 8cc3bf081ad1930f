"""Pytest fixtures: test client, in-memory SQLite, operator token, fake push sender."""
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from fakes import FakeSender

# In-memory SQLite for the app (must be set before komsai is imported)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPERATOR_EMAILS", "ops@komsaicup.com,scorer@komsaicup.com")
os.environ.setdefault("VAPID_PUBLIC_KEY", "test-public-key")
os.environ.setdefault("VAPID_PRIVATE_KEY", "test-private-key")
# Sign-up limit high enough for the whole suite
os.environ.setdefault("RATE_LIMIT_REGISTER_PER_MINUTE", "100")

import komsai.models  # noqa: E402,F401  (registers tables on SQLModel.metadata)
from komsai.main import app  # noqa: E402


@pytest.fixture(scope="function")
def client():
    """TestClient; lifespan creates the tables and the push dispatcher."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    """Fresh isolated database for service-level tests."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture(scope="session")
def _operator_token():
    """Register + login once per session; the same token is reused."""
    with TestClient(app) as auth_client:
        auth_client.post(
            "/auth/register",
            json={"email": "ops@komsaicup.com", "password": "komsai-ops-1", "full_name": "Cup Ops"},
        )
        r = auth_client.post("/auth/login", json={"email": "ops@komsaicup.com", "password": "komsai-ops-1"})
        assert r.status_code == 200, f"Login failed: {r.status_code} {r.text}"
        return r.json()["access_token"]


@pytest.fixture
def operator_headers(_operator_token):
    return {"Authorization": f"Bearer {_operator_token}"}


@pytest.fixture
def fake_sender():
    return FakeSender()

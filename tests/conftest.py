"""
Shared fixtures: an in-memory database per test and signed bearer tokens.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from taskboard.core.config import settings
from taskboard.db.session import build_engine, create_db_and_tables, get_session
from taskboard.main import app


def make_token(user_id, email=None, name=None, expires_in=timedelta(hours=1), secret=None, audience=None):
    """Mint a token the way the identity provider does."""
    payload = {
        "sub": user_id,
        "email": email or f"{user_id}@example.com",
        "aud": audience or settings.AUTH_JWT_AUDIENCE,
        "exp": datetime.now(timezone.utc) + expires_in,
        "user_metadata": {"name": name or user_id.title()},
    }
    return jwt.encode(payload, secret or settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def bearer(user_id, **kwargs):
    return {"Authorization": f"Bearer {make_token(user_id, **kwargs)}"}


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return bearer("alice")


@pytest.fixture
def other_headers():
    return bearer("bob")


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def quiet_client(client):
    """Same app and database as ``client``; unhandled errors come back as 500s."""
    return TestClient(app, raise_server_exceptions=False)

"""
Pytest configuration and fixtures for the Watu Kobu Collections Service.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENABLE_CORS", "false")

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from watukobu.database import get_db
from watukobu.main import app
from watukobu.models.database import Asset, Base, User
from watukobu.seed import seed_demo_data


@pytest.fixture
def engine():
    """Fresh in-memory database shared across threads for one test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db_session: Session) -> Session:
    """Session with the demo branches, users, assets and reports loaded."""
    seed_demo_data(db_session)
    return db_session


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI application.

    Every request uses the test session instead of the configured database.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _user(session: Session, email: str) -> User:
    return session.query(User).filter(User.email == email).one()


@pytest.fixture
def admin(seeded: Session) -> User:
    return _user(seeded, "admin@watukobu.co.id")


@pytest.fixture
def manager(seeded: Session) -> User:
    return _user(seeded, "manager@watukobu.co.id")


@pytest.fixture
def budi(seeded: Session) -> User:
    return _user(seeded, "budi.santoso@watukobu.co.id")


@pytest.fixture
def dewi(seeded: Session) -> User:
    return _user(seeded, "dewi.lestari@watukobu.co.id")


@pytest.fixture
def asset_001(seeded: Session) -> Asset:
    return seeded.query(Asset).filter(Asset.loan_id == "LOAN-2024-001").one()


@pytest.fixture
def admin_headers(admin: User) -> dict:
    return {"X-User-ID": admin.id, "X-Correlation-ID": "test-correlation-123"}


@pytest.fixture
def manager_headers(manager: User) -> dict:
    return {"X-User-ID": manager.id}


@pytest.fixture
def budi_headers(budi: User) -> dict:
    return {"X-User-ID": budi.id}


@pytest.fixture
def dewi_headers(dewi: User) -> dict:
    return {"X-User-ID": dewi.id}


@pytest.fixture
def api_prefix() -> str:
    return "/api/v1"

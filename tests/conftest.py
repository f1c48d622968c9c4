import os

os.environ.setdefault("POSTGRES_DSN", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dayfit.core.auth import AuthUser, current_user
from dayfit.core.config import settings
from dayfit.core.db import Base, get_db
from dayfit.main import app

USER_ID = "user-1"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def no_assignment_delay(monkeypatch):
    monkeypatch.setattr(settings, "ASSIGNMENT_DELAY_SECONDS", 0.0)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[current_user] = lambda: AuthUser(id=USER_ID, email="ana@example.com", name="ana")
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def gym_template_payload():
    return {
        "name": "Upper body",
        "routine_type": "gym",
        "gym_data": {
            "exercises": [
                {
                    "exercise_name": "Bench press",
                    "sets": [{"reps": 10, "weight_kg": 60}],
                }
            ],
            "total_duration_minutes": 45,
        },
        "notes": "push day",
    }

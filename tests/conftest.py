"""Shared test fixtures."""
from datetime import datetime
from typing import Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from fitboard.models.activity import Activity
from fitboard.models.sync import SyncLog  # noqa: F401


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="seeded_activity")
def seeded_activity_fixture(test_session: Session) -> Activity:
    """A persisted Activity for store and route tests."""
    activity = Activity(
        id=1234567890,
        name="Morning Run",
        activity_type="Run",
        start_date=datetime(2025, 1, 15, 15, 30),
        start_date_local=datetime(2025, 1, 15, 7, 30),
        timezone="(GMT-08:00) America/Los_Angeles",
        distance=8046.72,
        moving_time=2400,
        elapsed_time=2520,
        total_elevation_gain=85.0,
        average_speed=3.35,
    )
    test_session.add(activity)
    test_session.commit()
    test_session.refresh(activity)
    return activity

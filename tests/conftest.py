"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from habit_tracker.database import Base, get_db, new_id, utcnow  # noqa: E402
from habit_tracker.main import app  # noqa: E402
from habit_tracker.models import EntryImportJob, EntryImportStatus, Habit  # noqa: E402

USER_ID = "u_alice"
OTHER_USER_ID = "u_bob"


@pytest.fixture
def test_engine():
    """Create a test database for testing."""
    # One shared in-memory SQLite connection so every session sees the same data
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """Test client whose requests use the test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_habit(db):
    def _make_habit(user_id=USER_ID, name="Read", target_value=10, target_unit="pages"):
        habit = Habit(
            id=new_id("h"),
            user_id=user_id,
            name=name,
            target_value=target_value,
            target_unit=target_unit,
        )
        db.add(habit)
        db.commit()
        return habit

    return _make_habit


@pytest.fixture
def make_job(db):
    def _make_job(
        content=b"habit_id,date,notes\n",
        user_id=USER_ID,
        status=EntryImportStatus.PENDING,
        file_name="entries.csv",
        created_at_utc=None,
        completed_at_utc=None,
        last_heartbeat_at_utc=None,
    ):
        if isinstance(content, str):
            content = content.encode("utf-8")
        job = EntryImportJob(
            id=new_id("ei"),
            user_id=user_id,
            status=status,
            file_name=file_name,
            file_content=content,
            errors=[],
            created_at_utc=created_at_utc or utcnow(),
            completed_at_utc=completed_at_utc,
            last_heartbeat_at_utc=last_heartbeat_at_utc,
        )
        db.add(job)
        db.commit()
        return job

    return _make_job

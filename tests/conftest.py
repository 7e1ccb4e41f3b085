"""
Pytest fixtures for testing
"""
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from habitxp.infrastructure.db.session import Base
from habitxp.infrastructure.db.models import Category, HabitModel


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads (TestClient runs sync routes in a pool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_user_id():
    """Sample user ID for tests"""
    return 1


@pytest.fixture
def today():
    return date(2026, 3, 10)


@pytest.fixture
def fitness_category(db_session):
    category = Category(id=1, name="Fitness", color="#ef4444", icon="dumbbell")
    db_session.add(category)
    db_session.flush()
    return category


@pytest.fixture
def make_habit(db_session, sample_user_id, fitness_category):
    """Factory: persist a habit with explicit difficulty/cadence."""
    def _make(
        difficulty: str = "normal",
        cadence: str = "daily",
        target: float | None = None,
        category_id: int | None = None,
        user_id: int | None = None,
        title: str = "Push-ups",
    ) -> HabitModel:
        habit = HabitModel(
            user_id=user_id or sample_user_id,
            category_id=category_id or fitness_category.id,
            title=title,
            difficulty=difficulty,
            cadence=cadence,
            target=target,
            is_archived=False,
        )
        db_session.add(habit)
        db_session.commit()
        return habit
    return _make

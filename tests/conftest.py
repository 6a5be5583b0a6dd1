"""Shared pytest fixtures for all tests."""
import os
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test settings before importing anything else
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "DEBUG"

from storyreel.core.clock import SequentialIdGenerator  # noqa: E402
from storyreel.core.database import Base  # noqa: E402

# Import all models to register them with Base before creating tables
from storyreel.models.asset import Asset  # noqa: E402,F401
from storyreel.models.saved_workflow import SavedWorkflow  # noqa: E402,F401

from tests.factories.fakes import FakeClock  # noqa: E402


@pytest.fixture
def clock():
    """Provide a clock that only advances when the test says so."""
    return FakeClock()


@pytest.fixture
def id_generator():
    """Provide deterministic ``{prefix}_{n}`` ids."""
    return SequentialIdGenerator()


@pytest.fixture(scope="session")
def test_engine():
    """
    Create test database engine for the session.

    An in-memory SQLite database shared by every connection, so sessions
    opened from worker threads see the same tables.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Drop all tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    """
    Provide a session factory bound to the test database.

    Every table is emptied after the test for isolation.
    """
    factory = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)

    yield factory

    with test_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a new database session for a test."""
    session = session_factory()
    yield session
    session.close()

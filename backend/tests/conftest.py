"""Shared test fixtures for all test modules."""

import contextlib
from datetime import UTC, datetime
from unittest.mock import patch

import jwt
import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import flexflow.models  # noqa: F401
from flexflow.core import database as db_module
from flexflow.core.config import settings
from flexflow.core.database import Base, get_db
from flexflow.models.user import SubscriptionStatus, User

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Fixed wall clock used by services under test
NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=UTC)

OPERATOR_KEY = "test-operator-key"


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture(autouse=True)
def operator_key():
    """Configure a known operator key for internal endpoints."""
    with patch.object(settings, "OPERATOR_API_KEY", OPERATOR_KEY):
        yield OPERATOR_KEY


@pytest.fixture
def db_session():
    """Create a database session for direct testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


def create_user(
    db_session: Session,
    user_id: str = "user-1",
    status: SubscriptionStatus = SubscriptionStatus.FREE_TRIAL,
    trial_end_date: datetime | None = None,
    **fields,
) -> User:
    """Helper to create a user directly in the DB."""
    user = User(
        id=user_id,
        subscription_status=status.value,
        trial_end_date=trial_end_date,
        **fields,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def auth_headers(user_id: str) -> dict[str, str]:
    """Bearer header carrying an access token for ``user_id``."""
    token = jwt.encode({"sub": user_id}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


def operator_headers() -> dict[str, str]:
    """Header carrying the operator key used by internal callers."""
    return {"X-Operator-Key": OPERATOR_KEY}

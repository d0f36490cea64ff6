import os

# Keep the app's own engine off the working directory during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from worldcup.database import get_session  # noqa: E402
from worldcup.main import app  # noqa: E402
from worldcup.models.item import WorldCupItem  # noqa: E402
from worldcup.models.worldcup import WorldCup  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models are imported (tests/__init__.py) before create_all()
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables are created per test and dropped afterwards
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration, so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def create_pool(session: Session, count: int, title: str = "Test Cup") -> WorldCup:
    """A world cup with *count* items titled Item 1..Item N."""
    worldcup = WorldCup(title=title)
    session.add(worldcup)
    session.commit()
    session.refresh(worldcup)

    for i in range(count):
        session.add(WorldCupItem(worldcup_id=worldcup.id, title=f"Item {i + 1}", order_num=i))
    session.commit()
    return worldcup


@pytest.fixture
def make_pool(session: Session):
    """Factory fixture: make_pool(n) -> WorldCup with n items"""

    def _make(count: int, title: str = "Test Cup") -> WorldCup:
        return create_pool(session, count, title)

    return _make

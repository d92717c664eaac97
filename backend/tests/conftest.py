import os

# Must be set before chessclub.database is imported (engine is created at import)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from chessclub.database import get_session  # noqa: E402
from chessclub.main import app  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup
# ============================================================================
# 1. Fresh sqlite:///:memory: engine per test, StaticPool so every session
#    in that test sees the same database
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Models imported before create_all() (see session_fixture)
# 4. App dependency overridden to use the test engine (see client_fixture)


@pytest.fixture(name="engine")
def engine_fixture():
    from chessclub.models.match import Match  # noqa: F401
    from chessclub.models.player import Player  # noqa: F401
    from chessclub.models.schedule import Schedule  # noqa: F401

    test_engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    """Provide a test database session"""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(engine):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration so the app never uses its own engine.
    """

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="fail_commits")
def fail_commits_fixture(monkeypatch):
    """Return a function that makes every later Session.commit raise"""

    def failing_commit(self):
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    def arm():
        monkeypatch.setattr(Session, "commit", failing_commit)

    return arm

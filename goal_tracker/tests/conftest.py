"""
Shared fixtures for goal tracker tests.
"""
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("GOAL_TRACKER_LOG_DIR", tempfile.gettempdir())
os.environ["GOAL_TRACKER_API_KEY"] = "test-key"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from goal_tracker.database import Base
from goal_tracker import models  # noqa: F401  register tables
from goal_tracker.services.clock_service import BlockHeightClock
from goal_tracker.services.goal_service import GoalService
from goal_tracker.constants import VERIFICATION_SELF, VERIFICATION_THIRD_PARTY, PRIVACY_PUBLIC

OWNER = "SP-OWNER"
VALIDATOR = "SP-VALIDATOR"
STRANGER = "SP-STRANGER"


class RecordingRewardIssuer:
    """Reward issuer that remembers which goals it issued for"""

    def __init__(self):
        self.issued = []

    def issue(self, goal):
        self.issued.append(goal.id)


@pytest.fixture
def engine():
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
def db_session(engine):
    """Fresh in-memory database session per test"""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock(db_session):
    return BlockHeightClock(db_session)


@pytest.fixture
def rewards():
    return RecordingRewardIssuer()


@pytest.fixture
def service(db_session, clock, rewards):
    return GoalService(db_session, clock=clock, rewards=rewards)


@pytest.fixture
def self_goal(service, clock):
    """Active self-verified goal owned by OWNER, deadline 100 blocks ahead"""
    return service.create_goal(
        OWNER, "Run a marathon", "Finish under 4 hours",
        clock.now() + 100, VERIFICATION_SELF, PRIVACY_PUBLIC, ["10k", "Half"]
    )


@pytest.fixture
def third_party_goal(service, clock):
    """Active third-party goal owned by OWNER, deadline 100 blocks ahead"""
    return service.create_goal(
        OWNER, "Learn Spanish", "Pass B1 exam",
        clock.now() + 100, VERIFICATION_THIRD_PARTY, PRIVACY_PUBLIC, ["A1", "A2"]
    )


@pytest.fixture
def client(engine):
    """API client bound to the test database"""
    from fastapi.testclient import TestClient
    from goal_tracker.database import get_db
    from goal_tracker.main import app

    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

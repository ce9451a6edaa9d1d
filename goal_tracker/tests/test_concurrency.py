"""
Tests for serialized writes.

Each worker thread gets its own session and service, as concurrent
requests would.
"""
import pytest
from concurrent.futures import ThreadPoolExecutor
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from goal_tracker.database import Base
from goal_tracker.services.clock_service import BlockHeightClock
from goal_tracker.services.goal_service import GoalService
from goal_tracker.exceptions import RewardAlreadyMintedException
from goal_tracker.constants import VERIFICATION_SELF, PRIVACY_PUBLIC
from goal_tracker.tests.conftest import OWNER, RecordingRewardIssuer


@pytest.fixture
def file_engine(tmp_path):
    """SQLite file database so every thread gets its own connection"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'goals.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


def _run_in_threads(engine, rewards, work, count):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def worker(n):
        db = Session()
        try:
            service = GoalService(db, clock=BlockHeightClock(db), rewards=rewards)
            try:
                return "ok", work(service, n)
            except RewardAlreadyMintedException as e:
                return e.code, None
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        return list(pool.map(worker, range(count)))


class TestConcurrentWrites:

    def test_concurrent_creates_get_distinct_sequential_ids(self, file_engine):
        rewards = RecordingRewardIssuer()

        results = _run_in_threads(
            file_engine, rewards,
            lambda service, n: service.create_goal(
                f"user-{n}", f"Goal {n}", "", 100, VERIFICATION_SELF, PRIVACY_PUBLIC, ["m"]
            ),
            30,
        )

        ids = sorted(goal_id for outcome, goal_id in results if outcome == "ok")
        assert ids == list(range(1, 31))

    def test_concurrent_mints_succeed_once(self, file_engine):
        db = sessionmaker(bind=file_engine)()
        service = GoalService(db, clock=BlockHeightClock(db), rewards=RecordingRewardIssuer())
        goal_id = service.create_goal(OWNER, "Goal", "", 100, VERIFICATION_SELF, PRIVACY_PUBLIC, [])
        service.complete_goal(OWNER, goal_id)
        db.close()
        rewards = RecordingRewardIssuer()

        results = _run_in_threads(
            file_engine, rewards,
            lambda service, n: service.mint_reward(OWNER, goal_id).id,
            10,
        )

        outcomes = [outcome for outcome, _ in results]
        assert outcomes.count("ok") == 1
        assert outcomes.count("reward_already_minted") == 9
        assert rewards.issued == [goal_id]

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime
from goal_tracker.database import Base
from goal_tracker.constants import GOAL_STATUS_ACTIVE, PRIVACY_PUBLIC


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, autoincrement=False)
    owner = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    deadline = Column(Integer, nullable=False)  # block height
    verification_type = Column(String, nullable=False)  # self, third_party
    status = Column(String, default=GOAL_STATUS_ACTIVE)  # active, completed, verified, expired

    # Block heights set at the corresponding transitions
    creation_time = Column(Integer, nullable=False)
    completion_time = Column(Integer, nullable=True)
    verification_time = Column(Integer, nullable=True)

    privacy = Column(String, default=PRIVACY_PUBLIC)  # public, private
    reward_minted = Column(Boolean, default=False)


class Milestone(Base):
    __tablename__ = "milestones"

    goal_id = Column(Integer, primary_key=True)
    position = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    completed = Column(Boolean, default=False)
    completion_time = Column(Integer, nullable=True)


class GoalValidator(Base):
    __tablename__ = "goal_validators"

    goal_id = Column(Integer, primary_key=True)
    position = Column(Integer, primary_key=True)
    validator = Column(String, nullable=False)


class Verification(Base):
    __tablename__ = "verifications"

    goal_id = Column(Integer, primary_key=True)
    verified_by = Column(String, nullable=False)
    verification_time = Column(Integer, nullable=False)
    verification_notes = Column(String, nullable=False, default="")


class UserGoal(Base):
    __tablename__ = "user_goals"

    owner = Column(String, primary_key=True)
    position = Column(Integer, primary_key=True)
    goal_id = Column(Integer, nullable=False)


class GoalSequence(Base):
    __tablename__ = "goal_sequence"

    id = Column(Integer, primary_key=True)
    last_id = Column(Integer, default=0)  # Last goal id handed out


class ChainState(Base):
    __tablename__ = "chain_state"

    id = Column(Integer, primary_key=True)
    block_height = Column(Integer, default=0)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

"""
Goal repository - Data access layer for goals and their child records.
Handles all database queries related to goals, milestones, validators,
verifications and the per-user goal index.

Repositories only flush; the lifecycle service owns the transaction.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from goal_tracker.constants import MAX_USER_GOALS
from goal_tracker.exceptions import InvalidParametersException
from goal_tracker.models import (
    Goal, Milestone, GoalValidator, Verification, UserGoal, GoalSequence
)


class GoalRepository:
    """Repository for Goal records and their child collections"""

    @staticmethod
    def next_id(db: Session) -> int:
        """Allocate the next sequential goal id (first id is 1)"""
        sequence = db.query(GoalSequence).filter(GoalSequence.id == 1).first()
        if not sequence:
            sequence = GoalSequence(id=1, last_id=0)
            db.add(sequence)
        sequence.last_id += 1
        db.flush()
        return sequence.last_id

    @staticmethod
    def get(db: Session, goal_id: int) -> Optional[Goal]:
        """Get goal by ID"""
        return db.query(Goal).filter(Goal.id == goal_id).first()

    @staticmethod
    def put(db: Session, goal: Goal) -> Goal:
        """Insert or overwrite a goal record"""
        goal = db.merge(goal)
        db.flush()
        return goal

    @staticmethod
    def get_milestones(db: Session, goal_id: int) -> Optional[List[Milestone]]:
        """
        Get the ordered milestone list of a goal.

        Returns:
            Milestones ordered by position, or None if the goal does not exist
        """
        if GoalRepository.get(db, goal_id) is None:
            return None
        return db.query(Milestone).filter(
            Milestone.goal_id == goal_id
        ).order_by(Milestone.position).all()

    @staticmethod
    def put_milestones(db: Session, goal_id: int, milestones: List[Milestone]) -> List[Milestone]:
        """Overwrite the milestone list of a goal"""
        stored = []
        for position, milestone in enumerate(milestones):
            milestone.goal_id = goal_id
            milestone.position = position
            stored.append(db.merge(milestone))

        db.query(Milestone).filter(
            Milestone.goal_id == goal_id,
            Milestone.position >= len(milestones)
        ).delete(synchronize_session="fetch")
        db.flush()
        return stored

    @staticmethod
    def get_validators(db: Session, goal_id: int) -> Optional[List[str]]:
        """
        Get the ordered validator identities of a goal.

        Returns:
            Validator identities, or None if no list was ever written
        """
        rows = db.query(GoalValidator).filter(
            GoalValidator.goal_id == goal_id
        ).order_by(GoalValidator.position).all()
        if not rows:
            return None
        return [row.validator for row in rows]

    @staticmethod
    def put_validators(db: Session, goal_id: int, validators: List[str]) -> None:
        """Overwrite the validator list of a goal"""
        for position, validator in enumerate(validators):
            db.merge(GoalValidator(goal_id=goal_id, position=position, validator=validator))

        db.query(GoalValidator).filter(
            GoalValidator.goal_id == goal_id,
            GoalValidator.position >= len(validators)
        ).delete(synchronize_session="fetch")
        db.flush()

    @staticmethod
    def get_verification(db: Session, goal_id: int) -> Optional[Verification]:
        """Get the verification record of a goal"""
        return db.query(Verification).filter(Verification.goal_id == goal_id).first()

    @staticmethod
    def put_verification(db: Session, goal_id: int, verification: Verification) -> Verification:
        """Insert or overwrite the verification record of a goal"""
        verification.goal_id = goal_id
        verification = db.merge(verification)
        db.flush()
        return verification


class UserGoalRepository:
    """Repository for the per-user goal index (append-only)"""

    @staticmethod
    def get(db: Session, owner: str) -> List[int]:
        """Get goal ids created by an owner, in creation order"""
        rows = db.query(UserGoal).filter(
            UserGoal.owner == owner
        ).order_by(UserGoal.position).all()
        return [row.goal_id for row in rows]

    @staticmethod
    def count(db: Session, owner: str) -> int:
        """Count goals indexed for an owner"""
        return db.query(UserGoal).filter(UserGoal.owner == owner).count()

    @staticmethod
    def append(db: Session, owner: str, goal_id: int) -> None:
        """
        Append a goal id to the owner's list.

        Raises:
            InvalidParametersException: if the owner already has MAX_USER_GOALS entries
        """
        position = UserGoalRepository.count(db, owner)
        if position >= MAX_USER_GOALS:
            raise InvalidParametersException(
                "owner", f"{owner} already has the maximum of {MAX_USER_GOALS} goals"
            )
        db.add(UserGoal(owner=owner, position=position, goal_id=goal_id))
        db.flush()

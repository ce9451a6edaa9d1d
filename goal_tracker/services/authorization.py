"""
Authorization predicates for goal operations.
Both checks are pure reads of current store state and never raise.
"""
from sqlalchemy.orm import Session

from goal_tracker.repositories.goal_repository import GoalRepository


class AuthorizationGuard:
    """Owner and validator checks consumed by every mutating operation"""

    def __init__(self, db: Session):
        self.db = db
        self.goal_repo = GoalRepository()

    def is_owner(self, goal_id: int, caller: str) -> bool:
        """True iff the goal exists and was created by caller"""
        goal = self.goal_repo.get(self.db, goal_id)
        if goal is None:
            return False
        return goal.owner == caller

    def is_validator(self, goal_id: int, caller: str) -> bool:
        """True iff caller appears in the goal's validator list"""
        validators = self.goal_repo.get_validators(self.db, goal_id)
        if validators is None:
            return False
        return caller in validators

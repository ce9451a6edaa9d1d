"""
Goal lifecycle service.
Drives goals through Active -> Completed -> Verified, Active -> Verified
(self-verification) and Active -> Expired, enforcing ownership and
validator rules on every transition.

Each mutating operation reads the clock once, validates every precondition,
then writes and commits as one unit. Any failure rolls the session back.
"""
import functools
import logging
import threading
from typing import List, Optional
from sqlalchemy.orm import Session

from goal_tracker.models import Goal, Milestone, Verification
from goal_tracker.repositories.goal_repository import GoalRepository, UserGoalRepository
from goal_tracker.services.authorization import AuthorizationGuard
from goal_tracker.services.clock_service import BlockHeightClock
from goal_tracker.services.reward_service import RewardIssuer
from goal_tracker.exceptions import (
    NotAuthorizedException,
    GoalNotFoundException,
    InvalidGoalStatusException,
    ValidatorAlreadyAddedException,
    RewardAlreadyMintedException,
    InvalidMilestoneException,
    InvalidParametersException,
    GoalExpiredException,
    GoalNotVerifiedException,
    RewardIssuanceException,
)
from goal_tracker.constants import (
    GOAL_STATUS_ACTIVE, GOAL_STATUS_COMPLETED, GOAL_STATUS_VERIFIED, GOAL_STATUS_EXPIRED,
    VERIFICATION_SELF, VERIFICATION_THIRD_PARTY, VERIFICATION_TYPES,
    PRIVACY_PUBLIC, PRIVACY_LEVELS,
    MAX_TITLE_LENGTH, MAX_DESCRIPTION_LENGTH, MAX_MILESTONE_TITLE_LENGTH, MAX_NOTES_LENGTH,
    MAX_MILESTONES, MAX_VALIDATORS, MAX_USER_GOALS,
    SELF_VERIFICATION_NOTES,
)

logger = logging.getLogger("goal_tracker.lifecycle")

# Serializes all writers in this process
_write_lock = threading.RLock()


def _atomic(method):
    """Run a lifecycle operation under the write lock as a single transaction"""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with _write_lock:
            try:
                result = method(self, *args, **kwargs)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
        return result
    return wrapper


def _check_length(field: str, value: str, limit: int) -> None:
    if len(value) > limit:
        raise InvalidParametersException(field, f"must be at most {limit} characters")


class GoalService:
    """Service for the goal lifecycle"""

    def __init__(self, db: Session, clock=None, rewards: Optional[RewardIssuer] = None):
        self.db = db
        self.clock = clock or BlockHeightClock(db)
        self.rewards = rewards or RewardIssuer()
        self.goal_repo = GoalRepository()
        self.user_goal_repo = UserGoalRepository()
        self.guard = AuthorizationGuard(db)

    # ===== READS =====

    def get_goal(self, goal_id: int) -> Optional[Goal]:
        return self.goal_repo.get(self.db, goal_id)

    def get_goal_milestones(self, goal_id: int) -> Optional[List[Milestone]]:
        return self.goal_repo.get_milestones(self.db, goal_id)

    def get_goal_validators(self, goal_id: int) -> Optional[List[str]]:
        return self.goal_repo.get_validators(self.db, goal_id)

    def get_goal_verification(self, goal_id: int) -> Optional[Verification]:
        return self.goal_repo.get_verification(self.db, goal_id)

    def get_user_goals(self, owner: str) -> List[int]:
        return self.user_goal_repo.get(self.db, owner)

    def can_access(self, goal_id: int, caller: str) -> bool:
        """Public goals are visible to everyone, private ones only to the owner"""
        goal = self.goal_repo.get(self.db, goal_id)
        if goal is None:
            return False
        return goal.privacy == PRIVACY_PUBLIC or goal.owner == caller

    # ===== HELPERS =====

    def _require_goal(self, goal_id: int) -> Goal:
        goal = self.goal_repo.get(self.db, goal_id)
        if goal is None:
            raise GoalNotFoundException(goal_id)
        return goal

    def _require_owner(self, goal_id: int, caller: str) -> None:
        if not self.guard.is_owner(goal_id, caller):
            raise NotAuthorizedException(goal_id, caller)

    # ===== TRANSITIONS =====

    @_atomic
    def create_goal(
        self,
        caller: str,
        title: str,
        description: str,
        deadline: int,
        verification_type: str,
        privacy: str,
        milestone_titles: List[str],
    ) -> int:
        """
        Create an Active goal with its milestones and index it under the caller.

        Returns:
            The new goal id
        """
        now = self.clock.now()

        if verification_type not in VERIFICATION_TYPES:
            raise InvalidParametersException("verification_type", f"'{verification_type}' is not supported")
        if privacy not in PRIVACY_LEVELS:
            raise InvalidParametersException("privacy", f"'{privacy}' is not supported")
        if deadline <= now:
            raise InvalidParametersException("deadline", f"must be after current block {now}")

        _check_length("title", title, MAX_TITLE_LENGTH)
        _check_length("description", description, MAX_DESCRIPTION_LENGTH)
        if len(milestone_titles) > MAX_MILESTONES:
            raise InvalidParametersException("milestone_titles", f"at most {MAX_MILESTONES} milestones allowed")
        for milestone_title in milestone_titles:
            _check_length("milestone_titles", milestone_title, MAX_MILESTONE_TITLE_LENGTH)
        if self.user_goal_repo.count(self.db, caller) >= MAX_USER_GOALS:
            raise InvalidParametersException("owner", f"{caller} already has the maximum of {MAX_USER_GOALS} goals")

        goal_id = self.goal_repo.next_id(self.db)
        self.goal_repo.put(self.db, Goal(
            id=goal_id,
            owner=caller,
            title=title,
            description=description,
            deadline=deadline,
            verification_type=verification_type,
            status=GOAL_STATUS_ACTIVE,
            creation_time=now,
            privacy=privacy,
            reward_minted=False,
        ))
        self.goal_repo.put_milestones(
            self.db, goal_id,
            [Milestone(title=t, completed=False) for t in milestone_titles]
        )
        self.user_goal_repo.append(self.db, caller, goal_id)

        logger.info(f"Goal {goal_id} created by {caller} (deadline {deadline}, {verification_type})")
        return goal_id

    @_atomic
    def add_validator(self, caller: str, goal_id: int, validator: str) -> None:
        """Authorize validator to verify a goal on the owner's behalf"""
        self._require_owner(goal_id, caller)
        self._require_goal(goal_id)

        validators = self.goal_repo.get_validators(self.db, goal_id) or []
        if validator in validators:
            raise ValidatorAlreadyAddedException(goal_id, validator)
        if len(validators) >= MAX_VALIDATORS:
            raise InvalidParametersException("validator", f"at most {MAX_VALIDATORS} validators allowed")

        self.goal_repo.put_validators(self.db, goal_id, validators + [validator])
        logger.info(f"Validator {validator} added to goal {goal_id}")

    @_atomic
    def update_milestone(self, caller: str, goal_id: int, index: int, completed: bool) -> Milestone:
        """Mark a milestone done or not done while the goal is Active"""
        now = self.clock.now()
        goal = self._require_goal(goal_id)
        self._require_owner(goal_id, caller)
        if goal.status != GOAL_STATUS_ACTIVE:
            raise InvalidGoalStatusException(goal_id, goal.status)

        milestones = self.goal_repo.get_milestones(self.db, goal_id) or []
        if index < 0 or index >= len(milestones):
            raise InvalidMilestoneException(goal_id, index)

        milestone = milestones[index]
        milestone.completed = completed
        milestone.completion_time = now if completed else None
        self.goal_repo.put_milestones(self.db, goal_id, milestones)

        logger.info(f"Milestone {index} of goal {goal_id} set to completed={completed}")
        return milestone

    @_atomic
    def complete_goal(self, caller: str, goal_id: int) -> Goal:
        """
        Complete an Active goal before its deadline.

        Self-verified goals are verified in the same operation and end in
        Verified; third-party goals stop at Completed.
        """
        now = self.clock.now()
        goal = self._require_goal(goal_id)
        self._require_owner(goal_id, caller)
        if goal.status != GOAL_STATUS_ACTIVE:
            raise InvalidGoalStatusException(goal_id, goal.status)
        if now > goal.deadline:
            raise GoalExpiredException(goal_id, goal.deadline)

        goal.status = GOAL_STATUS_COMPLETED
        goal.completion_time = now
        goal = self.goal_repo.put(self.db, goal)
        logger.info(f"Goal {goal_id} completed at block {now}")

        if goal.verification_type == VERIFICATION_SELF:
            self._verify(goal, caller, SELF_VERIFICATION_NOTES, now)
        return goal

    @_atomic
    def verify_goal(self, caller: str, goal_id: int, notes: str) -> Goal:
        """Attest to a goal's completion as its owner (self) or a validator (third party)"""
        now = self.clock.now()
        goal = self._require_goal(goal_id)
        self._verify(goal, caller, notes, now)
        return goal

    def _verify(self, goal: Goal, caller: str, notes: str, now: int) -> None:
        completed = goal.status == GOAL_STATUS_COMPLETED
        self_shortcut = goal.verification_type == VERIFICATION_SELF and goal.status == GOAL_STATUS_ACTIVE
        if not (completed or self_shortcut):
            raise InvalidGoalStatusException(goal.id, goal.status)

        if goal.verification_type == VERIFICATION_SELF:
            authorized = caller == goal.owner
        else:
            authorized = (goal.verification_type == VERIFICATION_THIRD_PARTY
                          and self.guard.is_validator(goal.id, caller))
        if not authorized:
            raise NotAuthorizedException(goal.id, caller)

        _check_length("notes", notes, MAX_NOTES_LENGTH)

        goal.status = GOAL_STATUS_VERIFIED
        goal.verification_time = now
        if goal.completion_time is None:
            goal.completion_time = now
        self.goal_repo.put(self.db, goal)
        self.goal_repo.put_verification(self.db, goal.id, Verification(
            verified_by=caller,
            verification_time=now,
            verification_notes=notes,
        ))
        logger.info(f"Goal {goal.id} verified by {caller} at block {now}")

    def mint_reward(self, caller: str, goal_id: int) -> Goal:
        """Record the reward for a verified goal, then hand off issuance"""
        goal = self._record_mint(caller, goal_id)
        try:
            self.rewards.issue(goal)
        except Exception as e:
            logger.error(f"Reward issuance failed for goal {goal_id}: {e}")
            raise RewardIssuanceException(goal_id, str(e)) from e
        return goal

    @_atomic
    def _record_mint(self, caller: str, goal_id: int) -> Goal:
        goal = self._require_goal(goal_id)
        self._require_owner(goal_id, caller)
        if goal.status != GOAL_STATUS_VERIFIED:
            raise GoalNotVerifiedException(goal_id)
        if goal.reward_minted:
            raise RewardAlreadyMintedException(goal_id)

        goal.reward_minted = True
        goal = self.goal_repo.put(self.db, goal)
        logger.info(f"Reward minted for goal {goal_id}")
        return goal

    @_atomic
    def update_privacy(self, caller: str, goal_id: int, privacy: str) -> Goal:
        """Change goal visibility; allowed in any status"""
        goal = self._require_goal(goal_id)
        self._require_owner(goal_id, caller)
        if privacy not in PRIVACY_LEVELS:
            raise InvalidParametersException("privacy", f"'{privacy}' is not supported")

        goal.privacy = privacy
        goal = self.goal_repo.put(self.db, goal)
        logger.info(f"Goal {goal_id} privacy set to {privacy}")
        return goal

    @_atomic
    def expire_goal(self, goal_id: int) -> Goal:
        """Mark an Active goal past its deadline as Expired; anyone may call this"""
        now = self.clock.now()
        goal = self._require_goal(goal_id)
        if goal.status != GOAL_STATUS_ACTIVE:
            raise InvalidGoalStatusException(goal_id, goal.status)
        if now <= goal.deadline:
            raise InvalidParametersException("deadline", f"goal {goal_id} has not passed block {goal.deadline}")

        goal.status = GOAL_STATUS_EXPIRED
        goal = self.goal_repo.put(self.db, goal)
        logger.info(f"Goal {goal_id} expired at block {now}")
        return goal

"""
Reward issuance.
Token mechanics live outside this service; issuing a reward is recorded in the log only.
"""
import logging

from goal_tracker.models import Goal

logger = logging.getLogger("goal_tracker.rewards")


class RewardIssuer:
    """Issues the reward for a verified goal once minting has been recorded"""

    def issue(self, goal: Goal) -> None:
        logger.info(f"Reward issued for goal {goal.id} to {goal.owner}")

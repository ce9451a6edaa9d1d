"""
Custom exceptions for the goal tracker.
Every lifecycle failure is a typed, non-retryable outcome of an invalid request.
"""


class GoalTrackerException(Exception):
    """Base exception for goal tracker application"""
    code = "goal_tracker_error"


class NotAuthorizedException(GoalTrackerException):
    """Raised when the caller lacks the owner or validator relationship"""
    code = "not_authorized"

    def __init__(self, goal_id: int, caller: str):
        self.goal_id = goal_id
        self.caller = caller
        super().__init__(f"Caller {caller} is not authorized for goal {goal_id}")


class GoalNotFoundException(GoalTrackerException):
    """Raised when a goal is not found"""
    code = "goal_not_found"

    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Goal with ID {goal_id} not found")


class InvalidGoalStatusException(GoalTrackerException):
    """Raised when an operation is not legal from the goal's current status"""
    code = "invalid_goal_status"

    def __init__(self, goal_id: int, status: str):
        self.goal_id = goal_id
        self.status = status
        super().__init__(f"Operation not allowed for goal {goal_id} in status '{status}'")


class AlreadyVerifiedException(GoalTrackerException):
    """Reserved: not raised by any current transition"""
    code = "already_verified"

    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Goal {goal_id} is already verified")


class NotValidatorException(GoalTrackerException):
    """Reserved: validator checks in verify raise NotAuthorizedException"""
    code = "not_validator"

    def __init__(self, goal_id: int, caller: str):
        self.goal_id = goal_id
        self.caller = caller
        super().__init__(f"Caller {caller} is not a validator for goal {goal_id}")


class ValidatorAlreadyAddedException(GoalTrackerException):
    """Raised when a validator is added to the same goal twice"""
    code = "validator_already_added"

    def __init__(self, goal_id: int, validator: str):
        self.goal_id = goal_id
        self.validator = validator
        super().__init__(f"Validator {validator} already added to goal {goal_id}")


class GoalNotCompletedException(GoalTrackerException):
    """Reserved: not raised by any current transition"""
    code = "goal_not_completed"

    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Goal {goal_id} is not completed")


class RewardAlreadyMintedException(GoalTrackerException):
    """Raised when the reward for a goal is minted a second time"""
    code = "reward_already_minted"

    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Reward for goal {goal_id} already minted")


class InvalidMilestoneException(GoalTrackerException):
    """Raised when a milestone index is out of bounds"""
    code = "invalid_milestone"

    def __init__(self, goal_id: int, index: int):
        self.goal_id = goal_id
        self.index = index
        super().__init__(f"Goal {goal_id} has no milestone at index {index}")


class InvalidParametersException(GoalTrackerException):
    """Raised when operation input is malformed or exceeds a storage bound"""
    code = "invalid_parameters"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid {field}: {message}")


class GoalExpiredException(GoalTrackerException):
    """Raised when completion is attempted after the deadline"""
    code = "goal_expired"

    def __init__(self, goal_id: int, deadline: int):
        self.goal_id = goal_id
        self.deadline = deadline
        super().__init__(f"Goal {goal_id} expired at block {deadline}")


class GoalNotVerifiedException(GoalTrackerException):
    """Raised when a reward is minted before the goal is verified"""
    code = "goal_not_verified"

    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Goal {goal_id} is not verified")


class RewardIssuanceException(GoalTrackerException):
    """Raised when the reward was recorded but the issuer failed to deliver it"""
    code = "reward_issuance_failed"

    def __init__(self, goal_id: int, reason: str):
        self.goal_id = goal_id
        self.reason = reason
        super().__init__(f"Reward for goal {goal_id} recorded but issuance failed: {reason}")

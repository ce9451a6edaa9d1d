from pydantic import BaseModel, Field
from typing import Annotated, List, Optional

from goal_tracker.constants import (
    MAX_TITLE_LENGTH, MAX_DESCRIPTION_LENGTH, MAX_MILESTONE_TITLE_LENGTH,
    MAX_NOTES_LENGTH, MAX_IDENTITY_LENGTH, MAX_MILESTONES,
)


MilestoneTitle = Annotated[str, Field(max_length=MAX_MILESTONE_TITLE_LENGTH)]


# Goal schemas
class GoalBase(BaseModel):
    title: str = Field(..., max_length=MAX_TITLE_LENGTH)
    description: str = Field(default="", max_length=MAX_DESCRIPTION_LENGTH)
    deadline: int = Field(..., ge=0)  # Block height
    verification_type: str = "self"  # self, third_party
    privacy: str = "public"  # public, private


class GoalCreate(GoalBase):
    milestone_titles: List[MilestoneTitle] = Field(default_factory=list, max_length=MAX_MILESTONES)


class GoalResponse(GoalBase):
    id: int
    owner: str
    status: str
    creation_time: int
    completion_time: Optional[int] = None
    verification_time: Optional[int] = None
    reward_minted: bool = False

    class Config:
        from_attributes = True


# Milestone schemas
class MilestoneUpdate(BaseModel):
    completed: bool


class MilestoneResponse(BaseModel):
    position: int
    title: str
    completed: bool
    completion_time: Optional[int] = None

    class Config:
        from_attributes = True


# Validator schemas
class ValidatorCreate(BaseModel):
    validator: str = Field(..., min_length=1, max_length=MAX_IDENTITY_LENGTH)


class ValidatorListResponse(BaseModel):
    goal_id: int
    validators: List[str] = []


# Verification schemas
class VerifyRequest(BaseModel):
    notes: str = Field(default="", max_length=MAX_NOTES_LENGTH)


class VerificationResponse(BaseModel):
    goal_id: int
    verified_by: str
    verification_time: int
    verification_notes: str

    class Config:
        from_attributes = True


# Privacy schemas
class PrivacyUpdate(BaseModel):
    privacy: str


class AccessResponse(BaseModel):
    goal_id: int
    caller: str
    can_access: bool


class UserGoalsResponse(BaseModel):
    owner: str
    goal_ids: List[int] = []


class ChainHeightResponse(BaseModel):
    block_height: int

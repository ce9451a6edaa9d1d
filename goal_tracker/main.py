from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List
import logging
import os
from pathlib import Path

from goal_tracker.database import engine, get_db, Base
from goal_tracker import models  # noqa: F401
from goal_tracker.schemas import (
    GoalCreate, GoalResponse,
    MilestoneUpdate, MilestoneResponse,
    ValidatorCreate, ValidatorListResponse,
    VerifyRequest, VerificationResponse,
    PrivacyUpdate, AccessResponse,
    UserGoalsResponse, ChainHeightResponse,
)
from goal_tracker.auth import verify_api_key, get_caller
from goal_tracker.exceptions import (
    GoalTrackerException,
    NotAuthorizedException,
    GoalNotFoundException,
    InvalidParametersException,
    InvalidMilestoneException,
    RewardIssuanceException,
)
from goal_tracker.services.goal_service import GoalService
from goal_tracker.services.clock_service import BlockHeightClock
from goal_tracker.services.scheduler_service import start_scheduler, stop_scheduler
from goal_tracker.constants import (
    DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV, CORS_ALLOWED_ORIGINS
)

LOG_DIR = os.getenv("GOAL_TRACKER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("GOAL_TRACKER_LOG_FILE", "app.log")

# Fall back to a local directory if there are no permissions for /var/log
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("goal_tracker")

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Goal Tracker API",
    description="Personal goals with milestones, validators and verified rewards",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS_CODES = {
    NotAuthorizedException: status.HTTP_403_FORBIDDEN,
    GoalNotFoundException: status.HTTP_404_NOT_FOUND,
    InvalidParametersException: status.HTTP_400_BAD_REQUEST,
    InvalidMilestoneException: status.HTTP_400_BAD_REQUEST,
    RewardIssuanceException: status.HTTP_502_BAD_GATEWAY,
}


@app.exception_handler(GoalTrackerException)
async def goal_tracker_exception_handler(request: Request, exc: GoalTrackerException):
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_409_CONFLICT)
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.code} - {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "detail": str(exc)}
    )


@app.on_event("startup")
async def startup_event():
    logger.info(f"Goal Tracker API started. Logging to: {log_path}")
    start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Goal Tracker API")
    stop_scheduler()


def get_goal_service(db: Session = Depends(get_db)) -> GoalService:
    return GoalService(db)


def _require_access(service: GoalService, goal_id: int, caller: str):
    """Load a goal the caller is allowed to see"""
    goal = service.get_goal(goal_id)
    if goal is None:
        raise GoalNotFoundException(goal_id)
    if not service.can_access(goal_id, caller):
        raise NotAuthorizedException(goal_id, caller)
    return goal


@app.get("/")
async def root():
    return {"message": "Goal Tracker API", "status": "active"}


@app.get("/api/chain/height", response_model=ChainHeightResponse, dependencies=[Depends(verify_api_key)])
def get_chain_height(db: Session = Depends(get_db)):
    """Current block height used for deadlines"""
    return {"block_height": BlockHeightClock(db).now()}


# ===== GOAL READS =====

@app.get("/api/goals/{goal_id}", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
def get_goal(
    goal_id: int,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Get a goal the caller can see"""
    return _require_access(service, goal_id, caller)


@app.get("/api/goals/{goal_id}/milestones", response_model=List[MilestoneResponse], dependencies=[Depends(verify_api_key)])
def get_goal_milestones(
    goal_id: int,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Get the milestones of a goal"""
    _require_access(service, goal_id, caller)
    return service.get_goal_milestones(goal_id)


@app.get("/api/goals/{goal_id}/validators", response_model=ValidatorListResponse, dependencies=[Depends(verify_api_key)])
def get_goal_validators(
    goal_id: int,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Get the validators of a goal"""
    _require_access(service, goal_id, caller)
    return {"goal_id": goal_id, "validators": service.get_goal_validators(goal_id) or []}


@app.get("/api/goals/{goal_id}/verification", response_model=VerificationResponse, dependencies=[Depends(verify_api_key)])
def get_goal_verification(
    goal_id: int,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Get the verification record of a goal"""
    _require_access(service, goal_id, caller)
    verification = service.get_goal_verification(goal_id)
    if not verification:
        raise HTTPException(status_code=404, detail="Goal not verified")
    return verification


@app.get("/api/goals/{goal_id}/access", response_model=AccessResponse, dependencies=[Depends(verify_api_key)])
def can_access_goal(
    goal_id: int,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Check whether the caller may view a goal"""
    return {"goal_id": goal_id, "caller": caller, "can_access": service.can_access(goal_id, caller)}


@app.get("/api/users/{owner}/goals", response_model=UserGoalsResponse, dependencies=[Depends(verify_api_key)])
def get_user_goals(
    owner: str,
    _: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Get ids of goals created by a user"""
    return {"owner": owner, "goal_ids": service.get_user_goals(owner)}


# ===== GOAL TRANSITIONS =====

@app.post("/api/goals", response_model=GoalResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def create_goal(
    goal: GoalCreate,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Create a new goal"""
    goal_id = service.create_goal(
        caller,
        goal.title,
        goal.description,
        goal.deadline,
        goal.verification_type,
        goal.privacy,
        goal.milestone_titles,
    )
    return service.get_goal(goal_id)


@app.post("/api/goals/{goal_id}/validators", response_model=ValidatorListResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def add_validator(
    goal_id: int,
    body: ValidatorCreate,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Authorize a validator for a goal"""
    service.add_validator(caller, goal_id, body.validator)
    return {"goal_id": goal_id, "validators": service.get_goal_validators(goal_id) or []}


@app.put("/api/goals/{goal_id}/milestones/{index}", response_model=MilestoneResponse, dependencies=[Depends(verify_api_key)])
def update_milestone(
    goal_id: int,
    index: int,
    body: MilestoneUpdate,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Mark a milestone completed or not completed"""
    return service.update_milestone(caller, goal_id, index, body.completed)


@app.post("/api/goals/{goal_id}/complete", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
def complete_goal(
    goal_id: int,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Complete a goal (self-verified goals are verified immediately)"""
    return service.complete_goal(caller, goal_id)


@app.post("/api/goals/{goal_id}/verify", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
def verify_goal(
    goal_id: int,
    body: VerifyRequest,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Verify a goal's completion"""
    return service.verify_goal(caller, goal_id, body.notes)


@app.post("/api/goals/{goal_id}/mint-reward", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
def mint_reward(
    goal_id: int,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Mint the reward for a verified goal"""
    return service.mint_reward(caller, goal_id)


@app.put("/api/goals/{goal_id}/privacy", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
def update_privacy(
    goal_id: int,
    body: PrivacyUpdate,
    caller: str = Depends(get_caller),
    service: GoalService = Depends(get_goal_service)
):
    """Change goal visibility"""
    return service.update_privacy(caller, goal_id, body.privacy)


@app.post("/api/goals/{goal_id}/expire", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
def expire_goal(
    goal_id: int,
    service: GoalService = Depends(get_goal_service)
):
    """Expire a goal whose deadline has passed (anyone may call)"""
    return service.expire_goal(goal_id)

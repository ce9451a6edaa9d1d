from fastapi import Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader
import os

from goal_tracker.constants import MAX_IDENTITY_LENGTH

API_KEY = os.getenv("GOAL_TRACKER_API_KEY", "your-secret-key-change-me")

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for authentication"""
    if not api_key or api_key != API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key


async def get_caller(
    x_caller_id: str = Header(..., min_length=1, max_length=MAX_IDENTITY_LENGTH)
) -> str:
    """Identity of the caller, asserted by the gateway in front of the API"""
    return x_caller_id

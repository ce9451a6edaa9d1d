"""
Application-wide constants for the goal tracker.
"""

# Goal statuses
GOAL_STATUS_ACTIVE = "active"
GOAL_STATUS_COMPLETED = "completed"
GOAL_STATUS_VERIFIED = "verified"
GOAL_STATUS_EXPIRED = "expired"

# Verification types
VERIFICATION_SELF = "self"
VERIFICATION_THIRD_PARTY = "third_party"
VERIFICATION_TYPES = (VERIFICATION_SELF, VERIFICATION_THIRD_PARTY)

# Privacy levels
PRIVACY_PUBLIC = "public"
PRIVACY_PRIVATE = "private"
PRIVACY_LEVELS = (PRIVACY_PUBLIC, PRIVACY_PRIVATE)

# Field bounds
MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_MILESTONE_TITLE_LENGTH = 100
MAX_NOTES_LENGTH = 200
MAX_IDENTITY_LENGTH = 128

# List bounds
MAX_MILESTONES = 10
MAX_VALIDATORS = 10
MAX_USER_GOALS = 100

SELF_VERIFICATION_NOTES = "Self-verified goal completion"

# Block production
DEFAULT_BLOCK_INTERVAL_SECONDS = 600

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/goal-tracker"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

# CORS
CORS_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

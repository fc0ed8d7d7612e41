from pydantic import BaseModel
from typing import Optional
from enum import Enum


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class DeliveryAttempt(BaseModel):
    ordinal: int
    outcome: AttemptOutcome
    error: Optional[str] = None
    # Wait applied after this attempt, None when no retry followed
    backoff_seconds: Optional[float] = None

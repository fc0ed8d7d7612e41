from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class DeliveryState(str, Enum):
    """
    States of one delivery run:

        ATTEMPTING(n) -> SUCCESS
        ATTEMPTING(n) -> BACKOFF(n) -> ATTEMPTING(n+1)
        ATTEMPTING(max_attempts) -> EXHAUSTED
    """
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


class RetryPolicy(BaseModel):
    """
    Attempt ceiling and exponential backoff schedule.
    No jitter: the schedule is fixed so callers can rely on exact waits.
    """
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    initial_backoff: float = Field(default=1.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1)

    def backoff_after(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        if attempt < 1 or attempt >= self.max_attempts:
            raise ValueError(f"No backoff follows attempt {attempt} of {self.max_attempts}")
        return self.initial_backoff * (self.multiplier ** (attempt - 1))

    def schedule(self) -> List[float]:
        """All waits applied between attempts, e.g. [1.0, 2.0] for three attempts."""
        return [self.backoff_after(n) for n in range(1, self.max_attempts)]

    def next_state(self, attempt: int, succeeded: bool) -> DeliveryState:
        """Transition out of ATTEMPTING(attempt)."""
        if succeeded:
            return DeliveryState.SUCCESS
        if attempt >= self.max_attempts:
            return DeliveryState.EXHAUSTED
        return DeliveryState.BACKOFF


DEFAULT_RETRY_POLICY = RetryPolicy()

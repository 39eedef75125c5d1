"""
Request pacing for the Sleeper API.

Sleeper has no published rate limit but starts rejecting bursts, so fetch
orchestration waits between requests. Delays are injected so tests can run
with pacing disabled.
"""

import asyncio
import logging

from pydantic import BaseModel, Field

from backend.config import settings

logger = logging.getLogger(__name__)


class PacingPolicy(BaseModel):
    """Delay before a request and after a failed request, in seconds."""
    model_config = {"frozen": True}

    request_delay: float = Field(0.0, ge=0, description="Seconds to wait before a request")
    failure_delay: float = Field(0.0, ge=0, description="Seconds to wait after a failed request")

    @classmethod
    def for_requests(cls) -> "PacingPolicy":
        """Pacing applied to every Sleeper API call."""
        return cls(request_delay=settings.SLEEPER_API_REQUEST_DELAY, failure_delay=0.0)

    @classmethod
    def for_history(cls) -> "PacingPolicy":
        """Pacing applied between previous-league hops."""
        return cls(
            request_delay=settings.HISTORY_REQUEST_DELAY,
            failure_delay=settings.HISTORY_FAILURE_DELAY
        )

    @classmethod
    def disabled(cls) -> "PacingPolicy":
        return cls(request_delay=0.0, failure_delay=0.0)

    async def wait(self) -> None:
        if self.request_delay > 0:
            await asyncio.sleep(self.request_delay)

    async def wait_after_failure(self) -> None:
        if self.failure_delay > 0:
            logger.debug(f"Backing off {self.failure_delay:.1f}s after failed request")
            await asyncio.sleep(self.failure_delay)

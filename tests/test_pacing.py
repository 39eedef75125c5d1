"""
Unit tests for PacingPolicy
"""

import pytest
from unittest.mock import AsyncMock, patch
from pydantic import ValidationError

from backend.config import settings
from backend.services.pacing import PacingPolicy


class TestPacingPolicy:

    def test_history_delays_come_from_settings(self):
        pacing = PacingPolicy.for_history()

        assert pacing.request_delay == settings.HISTORY_REQUEST_DELAY
        assert pacing.failure_delay == settings.HISTORY_FAILURE_DELAY

    def test_policy_is_immutable(self):
        pacing = PacingPolicy.for_requests()

        with pytest.raises(ValidationError):
            pacing.request_delay = 0

    def test_negative_delay_rejected(self):
        with pytest.raises(ValidationError):
            PacingPolicy(request_delay=-1)

    @pytest.mark.asyncio
    async def test_disabled_never_sleeps(self):
        with patch("backend.services.pacing.asyncio.sleep", new_callable=AsyncMock) as sleep:
            pacing = PacingPolicy.disabled()
            await pacing.wait()
            await pacing.wait_after_failure()

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_waits_for_configured_delays(self):
        with patch("backend.services.pacing.asyncio.sleep", new_callable=AsyncMock) as sleep:
            pacing = PacingPolicy(request_delay=0.5, failure_delay=1.0)
            await pacing.wait()
            await pacing.wait_after_failure()

        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]

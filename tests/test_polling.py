"""
Tests for the caller-side poller.
"""

import pytest

from generation.errors import PollTimeoutError, TransportError
from generation.polling import wait_for_terminal
from generation.types import CanonicalStatus, GenerationResult


def snapshot(status, progress=0, url=None):
    return GenerationResult(task_id="t-1", status=status, progress=progress, video_url=url)


class ScriptedCheck:
    """Returns the scripted results in order, repeating the last one."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        item = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(item, Exception):
            raise item
        return item


class TestWaitForTerminal:
    """Test the caller-side poller."""

    @pytest.fixture
    def sleeps(self):
        return []

    @pytest.fixture
    def fake_sleep(self, sleeps):
        async def sleep(seconds):
            sleeps.append(seconds)

        return sleep

    @pytest.mark.asyncio
    async def test_polls_until_completed(self, sleeps, fake_sleep):
        check = ScriptedCheck(
            snapshot(CanonicalStatus.QUEUED),
            snapshot(CanonicalStatus.PROCESSING, 50),
            snapshot(CanonicalStatus.COMPLETED, 100, "https://cdn/v.mp4"),
        )

        result = await wait_for_terminal(check, "t-1", interval=2, timeout=60, sleep=fake_sleep)

        assert result.status == CanonicalStatus.COMPLETED
        assert result.video_url == "https://cdn/v.mp4"
        assert check.calls == 3
        assert sleeps == [2, 2]

    @pytest.mark.asyncio
    async def test_error_is_terminal(self, fake_sleep):
        check = ScriptedCheck(snapshot(CanonicalStatus.ERROR))

        result = await wait_for_terminal(check, "t-1", interval=1, timeout=60, sleep=fake_sleep)

        assert result.status == CanonicalStatus.ERROR
        assert check.calls == 1

    @pytest.mark.asyncio
    async def test_timeout_carries_last_result(self, fake_sleep):
        check = ScriptedCheck(snapshot(CanonicalStatus.PROCESSING, 70))

        with pytest.raises(PollTimeoutError) as exc_info:
            await wait_for_terminal(check, "t-1", interval=1, timeout=0, sleep=fake_sleep)

        assert exc_info.value.error_code == "POLL_TIMEOUT"
        assert exc_info.value.last_result.progress == 70

    @pytest.mark.asyncio
    async def test_check_errors_propagate_unchanged(self, fake_sleep):
        check = ScriptedCheck(snapshot(CanonicalStatus.QUEUED), TransportError("connection reset", provider="kie"))

        with pytest.raises(TransportError):
            await wait_for_terminal(check, "t-1", interval=1, timeout=60, sleep=fake_sleep)

        assert check.calls == 2

    @pytest.mark.asyncio
    async def test_accepts_lambda_returning_coroutine(self, sleeps, fake_sleep):
        """A plain callable that returns an awaitable is awaited on every attempt."""
        check = ScriptedCheck(
            snapshot(CanonicalStatus.PROCESSING, 40),
            snapshot(CanonicalStatus.COMPLETED, 100, "https://cdn/v.mp4"),
        )

        result = await wait_for_terminal(lambda: check(), "t-1", interval=3, timeout=60, sleep=fake_sleep)

        assert result.status == CanonicalStatus.COMPLETED
        assert check.calls == 2
        assert sleeps == [3]

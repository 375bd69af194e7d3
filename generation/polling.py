"""
Caller-side polling.

Adapters answer one status check per call. Callers that want to block until
a task finishes use wait_for_terminal, which repeats a check at a fixed
interval until the result is terminal or the deadline passes.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from tenacity import AsyncRetrying, RetryCallState, RetryError, retry_if_result, stop_after_delay, wait_fixed

from .errors import PollTimeoutError
from .types import GenerationResult

logger = logging.getLogger(__name__)


def _not_terminal(result: GenerationResult) -> bool:
    return not result.is_terminal


def _log_poll(retry_state: RetryCallState):
    result = retry_state.outcome.result()
    logger.debug(
        f"Task {result.task_id} still {result.status.value} ({result.progress}%), "
        f"poll #{retry_state.attempt_number}"
    )


async def wait_for_terminal(
    check: Callable[[], Awaitable[GenerationResult]],
    task_id: str,
    interval: Optional[float] = None,
    timeout: Optional[float] = None,
    provider: Optional[str] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> GenerationResult:
    """
    Poll `check` until it returns a completed or error result.

    Args:
        check: Zero-argument coroutine function performing one status check
        task_id: Used for logging and the timeout error
        interval: Seconds between checks (default: Config.poll_interval_seconds)
        timeout: Give up after this many seconds (default: Config.poll_timeout_seconds)

    Returns:
        The terminal GenerationResult

    Raises:
        PollTimeoutError: deadline passed; carries the last non-terminal result
        GenerationError: whatever a single check raised, unchanged
    """
    if interval is None or timeout is None:
        from core.config import get_config

        config = get_config()
        interval = config.poll_interval_seconds if interval is None else interval
        timeout = config.poll_timeout_seconds if timeout is None else timeout

    retrying = AsyncRetrying(
        retry=retry_if_result(_not_terminal),
        wait=wait_fixed(interval),
        stop=stop_after_delay(timeout),
        before_sleep=_log_poll,
        sleep=sleep,
    )

    # tenacity only awaits coroutine functions; `check` may be a lambda returning an awaitable
    async def attempt() -> GenerationResult:
        return await check()

    try:
        result = await retrying(attempt)
    except RetryError as e:
        last = e.last_attempt.result()
        logger.warning(f"Gave up waiting for task {task_id} after {timeout}s (last status: {last.status.value})")
        raise PollTimeoutError(task_id, timeout, last_result=last, provider=provider) from e

    logger.info(f"Task {task_id} finished with status {result.status.value}")
    return result

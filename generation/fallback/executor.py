"""
Execute a model call with automatic fallback to the next catalog model.

The same model is never retried. On failure the executor records the
outcome, picks the next model in the category and publishes exactly one
FallbackEvent for the switch. Models the health breaker marks as recently
failing are skipped up front, which also counts as a switch.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Iterable, Optional, TypeVar, Union

from core.circuit_breaker import ModelHealthBreaker, get_model_health_breaker

from ..types import MediaCategory
from .catalog import ModelCatalog, get_model_catalog, is_quota_error
from .events import FallbackChannel, FallbackEvent, FallbackReason, get_fallback_channel

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ModelExecutionResult(Generic[T]):
    """Outcome of execute_with_fallback."""
    success: bool
    data: Optional[T] = None
    model: Optional[str] = None
    attempts: int = 0
    error: Optional[str] = None
    fallback_chain: list[str] = field(default_factory=list)
    events: list[FallbackEvent] = field(default_factory=list)


async def execute_with_fallback(
    execute: Callable[[str], Awaitable[T]],
    initial_model: str,
    category: Union[MediaCategory, str],
    max_attempts: Optional[int] = None,
    excluded_models: Iterable[str] = (),
    enable_fallback: Optional[bool] = None,
    catalog: Optional[ModelCatalog] = None,
    breaker: Optional[ModelHealthBreaker] = None,
    channel: Optional[FallbackChannel] = None,
) -> ModelExecutionResult[T]:
    """
    Run `execute(model_id)`, switching models on failure.

    Args:
        execute: Coroutine function taking a model id
        initial_model: First model to try
        category: Generation category; also the category of published events
        max_attempts: Upper bound on models tried (default: FallbackConfig)
        excluded_models: Models never to switch to
        enable_fallback: False reports the first failure without switching
        catalog, breaker, channel: Collaborators (default: process-wide)

    Returns:
        ModelExecutionResult. Failures are reported in the result, never raised.
    """
    if max_attempts is None or enable_fallback is None:
        from core.config import get_config

        fallback = get_config().fallback
        max_attempts = max_attempts or fallback.max_attempts
        enable_fallback = fallback.enabled if enable_fallback is None else enable_fallback

    category = MediaCategory(category)
    catalog = catalog or get_model_catalog()
    breaker = breaker or get_model_health_breaker()
    channel = channel or get_fallback_channel()

    current = initial_model
    excluded = list(excluded_models)
    chain = [current]
    events: list[FallbackEvent] = []
    last_error: Optional[str] = None

    def switch(to_model: str, reason: FallbackReason):
        event = FallbackEvent(category=category, from_model=current, to_model=to_model, reason=reason.value)
        channel.publish(event)
        events.append(event)

    for attempt in range(1, max_attempts + 1):
        if breaker.should_skip(current):
            next_model = catalog.next_fallback(current, category, excluded + [current])
            if next_model is None or not enable_fallback:
                return ModelExecutionResult(
                    success=False,
                    attempts=attempt,
                    error=last_error or "All models failed or skipped",
                    fallback_chain=chain,
                    events=events,
                )
            switch(next_model, FallbackReason.RECENT_FAILURES)
            excluded.append(current)
            current = next_model
            chain.append(current)
            continue

        try:
            data = await execute(current)
        except Exception as e:
            last_error = str(getattr(e, "message", None) or e)
            breaker.record_failure(current, last_error)
            quota = is_quota_error(e)
            logger.warning(
                f"Model {current} failed (attempt {attempt}/{max_attempts}, quota={quota}): {last_error}"
            )

            if not enable_fallback or attempt >= max_attempts:
                reason = "Fallback disabled." if not enable_fallback else "Max attempts reached."
                return ModelExecutionResult(
                    success=False,
                    attempts=attempt,
                    error=f"Model {current} quota exceeded. {reason}" if quota else last_error,
                    fallback_chain=chain,
                    events=events,
                )

            next_model = catalog.next_fallback(current, category, excluded + [current])
            if next_model is None:
                return ModelExecutionResult(
                    success=False,
                    attempts=attempt,
                    error="All models quota exceeded or unavailable" if quota else last_error,
                    fallback_chain=chain,
                    events=events,
                )

            switch(next_model, FallbackReason.QUOTA_EXHAUSTED if quota else FallbackReason.MODEL_CALL_FAILED)
            excluded.append(current)
            current = next_model
            chain.append(current)
            continue

        breaker.record_success(current)
        return ModelExecutionResult(
            success=True,
            data=data,
            model=current,
            attempts=attempt,
            fallback_chain=chain,
            events=events,
        )

    return ModelExecutionResult(
        success=False,
        attempts=max_attempts,
        error=last_error or "Max attempts reached",
        fallback_chain=chain,
        events=events,
    )

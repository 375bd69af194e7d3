"""
Call instrumentation.

Runs an async operation unmodified and records its name, metadata, context
and duration to the log. Nothing here alters the operation's result or
exception.

Usage:
    result = await with_instrumentation(
        "kieSubmitTask",
        lambda: transport.post_json(...),
        {"model": "sora-2-text-to-video"},
        context,
    )
"""

import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _context_fields(context: Any) -> dict[str, Any]:
    if context is None:
        return {}
    if hasattr(context, "model_dump"):
        return {k: v for k, v in context.model_dump().items() if v is not None}
    if isinstance(context, dict):
        return {k: v for k, v in context.items() if v is not None}
    return {"context": str(context)}


async def with_instrumentation(
    name: str,
    operation: Callable[[], Awaitable[T]],
    metadata: Optional[dict[str, Any]] = None,
    context: Any = None,
) -> T:
    """
    Run `operation` and log the call.

    Args:
        name: Call name, e.g. "sutuSubmitTask"
        operation: Zero-argument coroutine factory
        metadata: Request details worth recording (never the credential)
        context: CallContext or dict describing the caller

    Returns:
        Whatever `operation` returns
    """
    fields = _context_fields(context)
    started = time.monotonic()

    logger.debug(f"{name} started | metadata={metadata or {}} | context={fields}")

    try:
        result = await operation()
    except Exception as e:
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.error(f"{name} failed after {elapsed_ms:.0f}ms: {type(e).__name__}: {e} | context={fields}")
        raise

    elapsed_ms = (time.monotonic() - started) * 1000
    log = logger.debug if fields.get("log_type") == "polling" else logger.info
    log(f"{name} completed in {elapsed_ms:.0f}ms | metadata={metadata or {}} | context={fields}")
    return result

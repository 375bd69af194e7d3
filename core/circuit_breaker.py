"""
Model health breaker.

Tracks per-model call outcomes so the fallback executor can skip models that
keep failing instead of spending an attempt on them.

States (per model):
- CLOSED: Normal operation, the model is tried
- OPEN: `failure_threshold` consecutive failures within the skip window;
  the model is skipped
- HALF_OPEN: The skip window has passed since the last failure; the next
  call is a trial. Success closes the circuit, failure reopens it.
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class ModelHealthConfig:
    """Configuration for skip decisions."""
    failure_threshold: int = 3  # Consecutive failures before skipping
    skip_window: float = 3600.0  # Seconds a failing model stays skipped


@dataclass
class ModelHealthStats:
    """Runtime statistics for one model."""
    model_id: str
    success_count: int = 0
    failure_count: int = 0
    consecutive_failures: int = 0
    last_error: Optional[str] = None
    last_error_time: Optional[float] = None

    @property
    def total_calls(self) -> int:
        return self.success_count + self.failure_count

    @property
    def success_rate(self) -> float:
        if self.total_calls == 0:
            return 100.0
        return self.success_count / self.total_calls * 100


class ModelHealthBreaker:
    """
    Per-model consecutive-failure breaker.

    Usage:
        breaker = ModelHealthBreaker()

        if not breaker.should_skip("gemini-2.5-flash-image"):
            try:
                result = await run(model)
                breaker.record_success(model)
            except Exception as e:
                breaker.record_failure(model, str(e))
    """

    def __init__(
        self,
        config: Optional[ModelHealthConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or ModelHealthConfig()
        self._clock = clock
        self._stats: dict[str, ModelHealthStats] = {}
        self._lock = threading.Lock()

    def _stats_for(self, model_id: str) -> ModelHealthStats:
        stats = self._stats.get(model_id)
        if stats is None:
            stats = ModelHealthStats(model_id=model_id)
            self._stats[model_id] = stats
        return stats

    def state(self, model_id: str) -> CircuitState:
        """Current state for a model, derived from its failure history."""
        with self._lock:
            stats = self._stats.get(model_id)
            if stats is None or stats.consecutive_failures < self.config.failure_threshold:
                return CircuitState.CLOSED
            if stats.last_error_time is None:
                return CircuitState.CLOSED
            elapsed = self._clock() - stats.last_error_time
            return CircuitState.OPEN if elapsed < self.config.skip_window else CircuitState.HALF_OPEN

    def should_skip(self, model_id: str) -> bool:
        skip = self.state(model_id) == CircuitState.OPEN
        if skip:
            logger.warning(f"Model {model_id} skipped due to recent failures")
        return skip

    def record_success(self, model_id: str):
        with self._lock:
            stats = self._stats_for(model_id)
            previous = stats.consecutive_failures
            stats.success_count += 1
            stats.consecutive_failures = 0
            stats.last_error = None
            stats.last_error_time = None

        if previous >= self.config.failure_threshold:
            logger.info(f"Model health [{model_id}]: recovered -> {CircuitState.CLOSED.value}")

    def record_failure(self, model_id: str, error: Optional[str] = None):
        with self._lock:
            stats = self._stats_for(model_id)
            stats.failure_count += 1
            stats.consecutive_failures += 1
            stats.last_error = error
            stats.last_error_time = self._clock()
            count = stats.consecutive_failures

        logger.warning(
            f"Model health [{model_id}] failure: {error}. "
            f"Consecutive failures: {count}/{self.config.failure_threshold}"
        )

    def reset(self, model_id: Optional[str] = None):
        """Forget the history of one model, or of all models."""
        with self._lock:
            if model_id is None:
                self._stats.clear()
            else:
                self._stats.pop(model_id, None)
        logger.info(f"Model health [{model_id or 'all'}] manually reset")

    def get_stats(self, model_id: str) -> ModelHealthStats:
        with self._lock:
            stats = self._stats.get(model_id) or ModelHealthStats(model_id=model_id)
            return ModelHealthStats(**vars(stats))

    def get_all_stats(self) -> dict[str, ModelHealthStats]:
        with self._lock:
            return {model_id: ModelHealthStats(**vars(s)) for model_id, s in self._stats.items()}

    def get_status(self, model_id: str) -> dict:
        """Health summary as a dictionary."""
        stats = self.get_stats(model_id)
        return {
            "model": model_id,
            "state": self.state(model_id).value,
            "healthy": stats.consecutive_failures < self.config.failure_threshold,
            "success_rate": stats.success_rate,
            "consecutive_failures": stats.consecutive_failures,
            "last_error": stats.last_error,
        }


# Global breaker instance
_breaker: Optional[ModelHealthBreaker] = None


def get_model_health_breaker() -> ModelHealthBreaker:
    """Get the process-wide breaker, configured from FallbackConfig."""
    global _breaker
    if _breaker is None:
        from .config import get_config

        fallback = get_config().fallback
        _breaker = ModelHealthBreaker(
            ModelHealthConfig(
                failure_threshold=fallback.failure_threshold,
                skip_window=fallback.skip_window_seconds,
            )
        )
    return _breaker

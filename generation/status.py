"""
Status normalization.

Every adapter owns a StatusTable mapping its upstream vocabulary onto the
four canonical states. Values missing from a table normalize to PROCESSING
(fail-open): a new vendor status string keeps the task pending rather than
being guessed as finished or failed. Unknown values are logged so they can
be added to the table.
"""

import logging
from typing import Any, Mapping

from .types import CanonicalStatus

logger = logging.getLogger(__name__)


class StatusTable:
    """Case-insensitive mapping from vendor status strings to CanonicalStatus."""

    def __init__(self, provider: str, mapping: Mapping[str, CanonicalStatus]):
        self.provider = provider
        self._mapping = {key.lower(): value for key, value in mapping.items()}

    def __contains__(self, raw_status: object) -> bool:
        return isinstance(raw_status, str) and raw_status.lower() in self._mapping

    def normalize(self, raw_status: Any) -> CanonicalStatus:
        if raw_status is None:
            logger.warning(f"[{self.provider}] No status in response, treating as processing")
            return CanonicalStatus.PROCESSING

        key = str(raw_status).strip().lower()
        status = self._mapping.get(key)
        if status is None:
            logger.warning(
                f"[{self.provider}] Unmapped upstream status '{raw_status}', treating as processing"
            )
            return CanonicalStatus.PROCESSING
        return status


_Q = CanonicalStatus.QUEUED
_P = CanonicalStatus.PROCESSING
_C = CanonicalStatus.COMPLETED
_E = CanonicalStatus.ERROR


SUTU_STATUSES = StatusTable("sutu", {
    "pending": _Q,
    "queued": _Q,
    "submitted": _Q,
    "running": _P,
    "processing": _P,
    "in_progress": _P,
    "completed": _C,
    "succeeded": _C,
    "success": _C,
    "error": _E,
    "failed": _E,
})

YUNWU_STATUSES = StatusTable("yunwu", {
    "pending": _Q,
    "processing": _P,
    "in_progress": _P,
    "completed": _C,
    "succeeded": _C,
    "failed": _E,
    "error": _E,
})

DAYUAPI_STATUSES = StatusTable("dayuapi", {
    "pending": _Q,
    "queued": _Q,
    "processing": _P,
    "completed": _C,
    "failed": _E,
    "canceled": _E,
})

# Kie Market API uses "state"; older responses used "status"
KIE_STATUSES = StatusTable("kie", {
    "waiting": _Q,
    "queuing": _Q,
    "pending": _Q,
    "queued": _Q,
    "generating": _P,
    "processing": _P,
    "success": _C,
    "completed": _C,
    "succeeded": _C,
    "fail": _E,
    "failed": _E,
    "error": _E,
})

KIE_GPT4O_STATUSES = StatusTable("kie_gpt4o", {
    "generating": _P,
    "success": _C,
    "create_task_failed": _E,
    "generate_failed": _E,
})

FAL_STATUSES = StatusTable("fal_image", {
    "in_queue": _Q,
    "in_progress": _P,
    "completed": _C,
    "failed": _E,
    "error": _E,
})

"""
Yunwu Sora backend.

Aspect ratio becomes an orientation, duration is sent as an integer and
hd selects the "large" output size. Status and progress live at the top
level, with the nested `detail` object as a fallback.
"""

import logging
from typing import Any, Optional

from ...extraction import FieldChain, parse_progress
from ...payloads import YunwuDetail, YunwuPayload, parse_payload
from ...status import YUNWU_STATUSES
from ...types import (
    CallContext,
    CanonicalStatus,
    GenerationRequest,
    GenerationResult,
    ProgressCallback,
    TaskHandle,
)
from ..base import ConfigInput, GenerationProvider, ProviderCapabilities, first_message, orientation_for

logger = logging.getLogger(__name__)

TASK_ID = FieldChain("task id", ["id", "task_id", "taskId", "data.id"])
VIDEO_URL = FieldChain("video url", ["detail.generations.0.url", "generations.0.url", "video_url", "url"])
DURATION = FieldChain("duration", ["detail.input.duration", "seconds"])


def model_name(hd: bool) -> str:
    return "sora-2-pro" if hd else "sora-2"


class YunwuProvider(GenerationProvider):
    name = "yunwu"
    display_name = "Yunwu API"
    capabilities = ProviderCapabilities(durations=("10", "15"))

    def transform_config(self, config: ConfigInput) -> dict[str, Any]:
        canonical = self.coerce_config(config)
        return {
            "orientation": orientation_for(canonical.aspect_ratio),
            "duration": int(canonical.duration),
            "size": "large" if canonical.hd else "medium",
            "watermark": False,
        }

    async def submit_task(
        self,
        request: GenerationRequest,
        credential: str,
        context: Optional[CallContext] = None,
    ) -> TaskHandle:
        self.require_credential(credential)
        params = self.transform_config(request.config)

        body = {
            "prompt": request.prompt,
            "model": model_name(params["size"] == "large"),
            "images": [request.reference_image_url] if request.reference_image_url else [],
            **params,
        }

        data = await self.call(
            "yunwuSubmitTask",
            "POST",
            "/api/yunwu/create",
            credential,
            body=body,
            metadata=self.submission_metadata(
                request,
                orientation=params["orientation"],
                duration=params["duration"],
                size=params["size"],
            ),
            context=context,
        )

        task_id = TASK_ID.require(data, self.name)
        logger.info(f"[{self.display_name}] Task submitted: {task_id}")

        raw_status = data.get("status")
        return TaskHandle(
            id=task_id,
            provider=self.name,
            status=YUNWU_STATUSES.normalize(raw_status) if raw_status else CanonicalStatus.QUEUED,
            raw=data,
        )

    async def check_status(
        self,
        task_id: str,
        credential: str,
        on_progress: Optional[ProgressCallback] = None,
        context: Optional[CallContext] = None,
    ) -> GenerationResult:
        self.require_credential(credential)

        data = await self.call(
            "yunwuCheckStatus",
            "GET",
            "/api/yunwu/query",
            credential,
            params={"id": task_id},
            metadata={"task_id": task_id, "has_progress_callback": on_progress is not None},
            context=context,
            log_type="polling",
        )
        payload = parse_payload(YunwuPayload, data, self.name)
        detail = payload.detail or YunwuDetail()

        raw_status = payload.status or detail.status
        raw_progress = payload.progress if payload.progress is not None else detail.progress_pct
        progress = parse_progress(raw_progress)
        await self.emit_progress(on_progress, progress)

        status = YUNWU_STATUSES.normalize(raw_status)
        result_id = str(payload.id) if payload.id else task_id

        if status is CanonicalStatus.ERROR:
            return self.error_result(
                result_id,
                progress,
                first_message(detail.failure_reason, payload.error),
                "Video generation failed",
                raw=data,
            )

        status, urls, reason = await self.resolve_output(
            result_id, status, VIDEO_URL.first_str(data), credential, context
        )
        if reason:
            return self.error_result(result_id, progress, reason, reason, raw=data)

        return GenerationResult(
            task_id=result_id,
            status=status,
            progress=progress,
            video_url=urls[0] if urls else None,
            output_urls=urls,
            duration=DURATION.first_str(data),
            quality="standard",
            is_compliant=True,
            raw=data,
        )

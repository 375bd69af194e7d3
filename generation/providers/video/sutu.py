"""
Sutu Sora backend.

Passes the canonical fields through almost unchanged (duration stays a
string). Flags content-policy hits through the `quality` field: anything
other than "standard" means the output was rejected.
"""

import logging
from typing import Any, Optional

from ...extraction import FieldChain, parse_progress
from ...payloads import SutuPayload, parse_payload
from ...status import SUTU_STATUSES
from ...types import (
    CallContext,
    CanonicalStatus,
    GenerationRequest,
    GenerationResult,
    ProgressCallback,
    TaskHandle,
)
from ..base import ConfigInput, GenerationProvider, ProviderCapabilities, first_message

logger = logging.getLogger(__name__)

TASK_ID = FieldChain("task id", ["id", "task_id", "data.id", "data.task_id", "result.id", "result.task_id"])
VIDEO_URL = FieldChain(
    "video url",
    ["data.output", "output.url", "output", "url", "video_url", "result.url", "video.url"],
)
WATERMARKED_URL = FieldChain(
    "watermarked video url",
    ["data.watermark_output", "output.watermark_url", "watermark_url", "watermarked_url", "watermark.url"],
)
DURATION = FieldChain("duration", ["data.duration", "output.duration", "seconds", "duration", "video.duration"])


class SutuProvider(GenerationProvider):
    name = "sutu"
    display_name = "Sutu API"
    capabilities = ProviderCapabilities(durations=("10", "15", "25"))

    def transform_config(self, config: ConfigInput) -> dict[str, Any]:
        canonical = self.coerce_config(config)
        return {
            "aspect_ratio": canonical.aspect_ratio,
            "duration": canonical.duration,
            "hd": canonical.hd,
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
            "model": "sora-2",
            "images": [request.reference_image_url] if request.reference_image_url else [],
            **params,
            "watermark": True,
            "private": True,
        }

        data = await self.call(
            "sutuSubmitTask",
            "POST",
            "/api/sora/generations",
            credential,
            body=body,
            metadata=self.submission_metadata(request, **params),
            context=context,
        )

        task_id = TASK_ID.require(data, self.name)
        logger.info(f"[{self.display_name}] Task submitted: {task_id}")

        raw_status = data.get("status")
        return TaskHandle(
            id=task_id,
            provider=self.name,
            status=SUTU_STATUSES.normalize(raw_status) if raw_status else CanonicalStatus.QUEUED,
            progress=parse_progress(data.get("progress")),
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
            "sutuCheckStatus",
            "GET",
            f"/api/sora/generations/{task_id}",
            credential,
            metadata={"task_id": task_id, "has_progress_callback": on_progress is not None},
            context=context,
            log_type="polling",
        )
        payload = parse_payload(SutuPayload, data, self.name)

        progress = parse_progress(payload.progress)
        await self.emit_progress(on_progress, progress)

        status = SUTU_STATUSES.normalize(payload.status)
        result_id = TASK_ID.first_str(data, default=task_id)

        # Quality is only judged when the upstream reports it
        is_compliant = payload.quality is None or payload.quality == "standard"
        violation = None if is_compliant else payload.quality

        if status is CanonicalStatus.ERROR or not is_compliant:
            return self.error_result(
                result_id,
                progress,
                violation or first_message(payload.error, payload.message),
                "Video generation failed after upstream retries",
                raw=data,
                quality=payload.quality or "unknown",
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
            watermarked_video_url=WATERMARKED_URL.first_str(data),
            output_urls=urls,
            duration=DURATION.first_str(data),
            quality=payload.quality or "standard",
            is_compliant=True,
            raw=data,
        )

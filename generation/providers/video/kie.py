"""
Kie Sora backend (Kie Market jobs API).

Parameters are wrapped in an `input` object. The model is chosen by
whether a reference image is present. Aspect ratio is sent as an
orientation word, duration as `n_frames`, and hd as `remove_watermark`.
"""

import logging
from typing import Any, Optional

from ...extraction import FieldChain, parse_progress
from ...status import KIE_STATUSES
from ...types import (
    CallContext,
    CanonicalStatus,
    GenerationRequest,
    GenerationResult,
    ProgressCallback,
    TaskHandle,
)
from ..base import ConfigInput, GenerationProvider, ProviderCapabilities, first_message, orientation_for
from ..kie_common import parse_envelope, result_urls

logger = logging.getLogger(__name__)

TASK_ID = FieldChain("task id", ["data.taskId", "data.task_id", "taskId", "task_id"])
VIDEO_URL = FieldChain("video url", ["output.url", "videoUrl", "url", "video_url"])

TEXT_TO_VIDEO = "sora-2-text-to-video"
IMAGE_TO_VIDEO = "sora-2-image-to-video"


class KieProvider(GenerationProvider):
    name = "kie"
    display_name = "KIE AI"
    capabilities = ProviderCapabilities(durations=("10", "15", "25"))

    def transform_config(self, config: ConfigInput) -> dict[str, Any]:
        canonical = self.coerce_config(config)
        return {
            "orientation": orientation_for(canonical.aspect_ratio),
            "n_frames": canonical.duration,
            "remove_watermark": canonical.hd,
        }

    async def submit_task(
        self,
        request: GenerationRequest,
        credential: str,
        context: Optional[CallContext] = None,
    ) -> TaskHandle:
        self.require_credential(credential)
        params = self.transform_config(request.config)
        model = IMAGE_TO_VIDEO if request.reference_image_url else TEXT_TO_VIDEO

        task_input: dict[str, Any] = {
            "prompt": request.prompt,
            "aspect_ratio": params["orientation"],
            "n_frames": params["n_frames"],
            "remove_watermark": params["remove_watermark"],
        }
        if request.reference_image_url:
            task_input["image_urls"] = [request.reference_image_url]

        data = await self.call(
            "kieSubmitTask",
            "POST",
            "/api/kie/create",
            credential,
            body={"model": model, "input": task_input},
            metadata=self.submission_metadata(request, model=model, **params),
            context=context,
        )
        parse_envelope(data, self.name)

        task_id = TASK_ID.require(data, self.name)
        logger.info(f"[{self.display_name}] Task submitted: {task_id} ({model})")

        return TaskHandle(id=task_id, provider=self.name, status=CanonicalStatus.QUEUED, raw=data)

    async def check_status(
        self,
        task_id: str,
        credential: str,
        on_progress: Optional[ProgressCallback] = None,
        context: Optional[CallContext] = None,
    ) -> GenerationResult:
        self.require_credential(credential)

        data = await self.call(
            "kieCheckStatus",
            "GET",
            "/api/kie/query",
            credential,
            params={"taskId": task_id},
            metadata={"task_id": task_id, "has_progress_callback": on_progress is not None},
            context=context,
            log_type="polling",
        )
        envelope = parse_envelope(data, self.name)
        record = envelope.data
        record_raw = data.get("data") or {}

        status = KIE_STATUSES.normalize(record.state or record.status if record else None)
        progress = parse_progress(record.progress if record else None)
        if status is CanonicalStatus.COMPLETED:
            progress = 100
        await self.emit_progress(on_progress, progress)

        if status is CanonicalStatus.ERROR:
            return self.error_result(
                task_id,
                progress,
                first_message(record.failMsg, record.error, record.message),
                "Video generation failed",
                raw=data,
            )

        urls = result_urls(record.resultJson) if record else []
        candidate = urls or VIDEO_URL.first_str(record_raw)

        status, urls, reason = await self.resolve_output(task_id, status, candidate, credential, context)
        if reason:
            return self.error_result(task_id, progress, reason, reason, raw=data)

        duration = first_message(record.duration, record.n_frames) if record else None
        return GenerationResult(
            task_id=task_id,
            status=status,
            progress=progress,
            video_url=urls[0] if urls else None,
            output_urls=urls,
            duration=duration,
            quality="standard",
            is_compliant=True,
            raw=data,
        )

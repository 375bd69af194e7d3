"""
Dayuapi Sora backend.

Encodes every setting in the model name:

    sora2-landscape              10s
    sora2-portrait-15s           15s
    sora2-pro-landscape-25s      25s (always pro)
    sora2-pro-portrait-hd-15s    hd (10s hd is served as 15s hd)

Completed tasks sometimes come back without `video_url`; the separate
/content endpoint is tried once before the task is reported as failed.
"""

import logging
from typing import Any, Optional

from ...errors import GenerationError
from ...extraction import FieldChain, parse_progress
from ...payloads import DayuapiContent, DayuapiPayload, parse_payload
from ...status import DAYUAPI_STATUSES
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

TASK_ID = FieldChain("task id", ["id", "task_id", "data.id"])


def compose_model_name(aspect_ratio: str, duration: str, hd: bool) -> str:
    orientation = orientation_for(aspect_ratio)
    if duration == "25":
        return f"sora2-pro-{orientation}-25s"
    if hd:
        return f"sora2-pro-{orientation}-hd-15s"
    if duration == "10":
        return f"sora2-{orientation}"
    return f"sora2-{orientation}-15s"


class DayuapiProvider(GenerationProvider):
    name = "dayuapi"
    display_name = "Dayuapi API"
    capabilities = ProviderCapabilities(durations=("10", "15", "25"), content_fallback=True)

    def transform_config(self, config: ConfigInput) -> dict[str, Any]:
        canonical = self.coerce_config(config)
        return {"model": compose_model_name(canonical.aspect_ratio, canonical.duration, canonical.hd)}

    async def submit_task(
        self,
        request: GenerationRequest,
        credential: str,
        context: Optional[CallContext] = None,
    ) -> TaskHandle:
        self.require_credential(credential)
        model = self.transform_config(request.config)["model"]

        body: dict[str, Any] = {"prompt": request.prompt, "model": model}
        if request.reference_image_url:
            body["image_url"] = request.reference_image_url

        data = await self.call(
            "dayuapiSubmitTask",
            "POST",
            "/api/dayuapi/create",
            credential,
            body=body,
            metadata=self.submission_metadata(request, model=model),
            context=context,
        )

        task_id = TASK_ID.require(data, self.name)
        logger.info(f"[{self.display_name}] Task submitted: {task_id} ({model})")

        raw_status = data.get("status")
        return TaskHandle(
            id=task_id,
            provider=self.name,
            status=DAYUAPI_STATUSES.normalize(raw_status) if raw_status else CanonicalStatus.QUEUED,
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
            "dayuapiCheckStatus",
            "GET",
            "/api/dayuapi/query",
            credential,
            params={"id": task_id},
            metadata={"task_id": task_id, "has_progress_callback": on_progress is not None},
            context=context,
            log_type="polling",
        )
        payload = parse_payload(DayuapiPayload, data, self.name)

        status = DAYUAPI_STATUSES.normalize(payload.status)
        progress = parse_progress(payload.progress)
        await self.emit_progress(on_progress, progress)

        result_id = str(payload.id) if payload.id else task_id

        if status is CanonicalStatus.ERROR:
            return self.error_result(
                result_id,
                progress,
                first_message(payload.error, payload.message),
                "Video generation failed",
                raw=data,
            )

        status, urls, reason = await self.resolve_output(
            result_id, status, payload.video_url, credential, context
        )
        if reason:
            return self.error_result(result_id, 100, reason, reason, raw=data)

        return GenerationResult(
            task_id=result_id,
            status=status,
            progress=progress,
            video_url=urls[0] if urls else None,
            output_urls=urls,
            quality="standard",
            is_compliant=True,
            raw=data,
        )

    async def fetch_content_urls(
        self,
        task_id: str,
        credential: str,
        context: Optional[CallContext] = None,
    ) -> list[str]:
        logger.info(f"[{self.display_name}] Task {task_id} completed without video_url, trying /content")
        try:
            data = await self.call(
                "dayuapiGetContent",
                "GET",
                "/api/dayuapi/content",
                credential,
                params={"id": task_id},
                metadata={"task_id": task_id},
                context=context,
                log_type="polling",
            )
            content = parse_payload(DayuapiContent, data, self.name)
        except GenerationError as e:
            logger.warning(f"[{self.display_name}] /content lookup failed: {e}")
            return []

        if not content.url:
            logger.warning(f"[{self.display_name}] /content responded without a url")
            return []
        return [content.url]

"""
Kie GPT-4o image adapter.

Uses Kie's dedicated 4o image endpoints rather than the Market jobs API.
Progress is reported as a ratio string ("0.45") and the outputs are in
`data.response.resultUrls`.
"""

import logging
from typing import Any, Optional

from ...extraction import FieldChain, parse_progress
from ...payloads import KieGpt4oEnvelope
from ...status import KIE_GPT4O_STATUSES
from ...types import (
    CallContext,
    CanonicalStatus,
    GenerationRequest,
    GenerationResult,
    MediaCategory,
    ProgressCallback,
    TaskHandle,
)
from ..base import ConfigInput, GenerationProvider, ProviderCapabilities, first_message, string_urls
from ..kie_common import parse_envelope

logger = logging.getLogger(__name__)

TASK_ID = FieldChain("task id", ["data.taskId", "taskId"])


class KieGpt4oProvider(GenerationProvider):
    name = "kie_gpt4o"
    display_name = "KIE AI GPT-4o Image"
    category = MediaCategory.IMAGE
    capabilities = ProviderCapabilities()
    required_fields = ("aspect_ratio", "hd")

    def transform_config(self, config: ConfigInput) -> dict[str, Any]:
        canonical = self.coerce_config(config)
        return {
            "size": "3:2" if canonical.aspect_ratio == "16:9" else "2:3",
            "nVariants": 2 if canonical.hd else 1,
        }

    async def submit_task(
        self,
        request: GenerationRequest,
        credential: str,
        context: Optional[CallContext] = None,
    ) -> TaskHandle:
        self.require_credential(credential)
        params = self.transform_config(request.config)

        body: dict[str, Any] = {"prompt": request.prompt, **params}
        if request.reference_image_url:
            body["filesUrl"] = [request.reference_image_url]

        data = await self.call(
            "kieGpt4oSubmitTask",
            "POST",
            "/api/kie/gpt4o-image/generate",
            credential,
            body=body,
            metadata=self.submission_metadata(request, **params),
            context=context,
        )
        parse_envelope(data, self.name, KieGpt4oEnvelope)

        task_id = TASK_ID.require(data, self.name)
        logger.info(f"[{self.display_name}] Task submitted: {task_id}")
        return TaskHandle(id=task_id, provider=self.name, raw=data)

    async def check_status(
        self,
        task_id: str,
        credential: str,
        on_progress: Optional[ProgressCallback] = None,
        context: Optional[CallContext] = None,
    ) -> GenerationResult:
        self.require_credential(credential)

        data = await self.call(
            "kieGpt4oCheckStatus",
            "GET",
            "/api/kie/gpt4o-image/record-info",
            credential,
            params={"taskId": task_id},
            metadata={"task_id": task_id},
            context=context,
            log_type="polling",
        )
        record = parse_envelope(data, self.name, KieGpt4oEnvelope).data

        status = KIE_GPT4O_STATUSES.normalize(record.status if record else None)
        progress = 100 if status is CanonicalStatus.COMPLETED else parse_progress(record.progress if record else None)
        await self.emit_progress(on_progress, progress)

        if status is CanonicalStatus.ERROR:
            return self.error_result(task_id, progress, first_message(record.errorMessage), "Image generation failed", raw=data)

        response = (record.response if record else None) or {}
        urls = string_urls(response.get("resultUrls") or [])

        status, urls, reason = await self.resolve_output(task_id, status, urls, credential, context)
        if reason:
            return self.error_result(task_id, progress, reason, reason, raw=data)

        return GenerationResult(
            task_id=task_id,
            status=status,
            progress=progress,
            video_url=urls[0] if urls else None,
            output_urls=urls,
            raw=data,
        )

"""
Kie Market image adapter (jobs/createTask + jobs/recordInfo).

Shares the proxy endpoints with the Kie video backend; the market model id
selects the image model.
"""

import logging
from typing import Any, Optional

from ...extraction import FieldChain, parse_progress
from ...status import KIE_STATUSES
from ...transport import ProxyTransport
from ...types import (
    CallContext,
    CanonicalStatus,
    GenerationRequest,
    GenerationResult,
    MediaCategory,
    ProgressCallback,
    TaskHandle,
)
from ..base import ConfigInput, GenerationProvider, ProviderCapabilities, first_message
from ..kie_common import parse_envelope, result_urls

logger = logging.getLogger(__name__)

TASK_ID = FieldChain("task id", ["data.taskId", "data.task_id", "taskId"])


class KieImageProvider(GenerationProvider):
    name = "kie_image"
    display_name = "KIE AI Image"
    category = MediaCategory.IMAGE
    capabilities = ProviderCapabilities()
    required_fields = ("aspect_ratio", "hd")

    def __init__(self, transport: Optional[ProxyTransport] = None, model: Optional[str] = None):
        super().__init__(transport)
        self._model = model

    @property
    def model(self) -> str:
        if self._model is None:
            from core.config import get_config

            return get_config().image.kie_market_model
        return self._model

    def transform_config(self, config: ConfigInput) -> dict[str, Any]:
        canonical = self.coerce_config(config)
        return {
            "aspect_ratio": canonical.aspect_ratio,
            "output_format": "png",
            "resolution": "2K" if canonical.hd else "1K",
        }

    async def submit_task(
        self,
        request: GenerationRequest,
        credential: str,
        context: Optional[CallContext] = None,
    ) -> TaskHandle:
        self.require_credential(credential)
        params = self.transform_config(request.config)
        model = self.model

        task_input: dict[str, Any] = {"prompt": request.prompt, **params}
        if request.reference_image_url:
            task_input["image_urls"] = [request.reference_image_url]

        data = await self.call(
            "kieImageSubmitTask",
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
            "kieImageCheckStatus",
            "GET",
            "/api/kie/query",
            credential,
            params={"taskId": task_id},
            metadata={"task_id": task_id},
            context=context,
            log_type="polling",
        )
        record = parse_envelope(data, self.name).data

        status = KIE_STATUSES.normalize(record.state if record else None)
        progress = 100 if status is CanonicalStatus.COMPLETED else parse_progress(record.progress if record else None)
        await self.emit_progress(on_progress, progress)

        if status is CanonicalStatus.ERROR:
            return self.error_result(
                task_id,
                progress,
                first_message(record.failMsg, record.failCode),
                "Image generation failed",
                raw=data,
            )

        urls = result_urls(record.resultJson) if record else []
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

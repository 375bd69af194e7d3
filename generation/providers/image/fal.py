"""
fal queue image adapter.

Submission enqueues a request on the model path; status is read from the
app's request status endpoint and the images from the request result
endpoint. The status endpoint never carries outputs, so completed tasks
always take the content retrieval step.
"""

import logging
from typing import Any, Optional

from ...errors import GenerationError
from ...extraction import FieldChain
from ...payloads import FalResult, FalStatus, parse_payload
from ...status import FAL_STATUSES
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
from ..base import ConfigInput, GenerationProvider, ProviderCapabilities, first_message, string_urls

logger = logging.getLogger(__name__)

TASK_ID = FieldChain("task id", ["request_id", "id", "data.request_id"])

# fal reports no percentage
_PROGRESS = {
    CanonicalStatus.QUEUED: 0,
    CanonicalStatus.PROCESSING: 50,
    CanonicalStatus.COMPLETED: 100,
    CanonicalStatus.ERROR: 0,
}


def app_id(model: str) -> str:
    """Queue status/result paths use the owner/app prefix: fal-ai/flux/dev -> fal-ai/flux."""
    return "/".join(model.split("/")[:2])


class FalImageProvider(GenerationProvider):
    name = "fal_image"
    display_name = "fal.ai Image"
    category = MediaCategory.IMAGE
    capabilities = ProviderCapabilities(content_fallback=True)
    required_fields = ("aspect_ratio", "hd")

    def __init__(self, transport: Optional[ProxyTransport] = None, model: Optional[str] = None):
        super().__init__(transport)
        self._model = model

    @property
    def model(self) -> str:
        if self._model is None:
            from core.config import get_config

            return get_config().image.fal_model
        return self._model

    def transform_config(self, config: ConfigInput) -> dict[str, Any]:
        canonical = self.coerce_config(config)
        return {
            "image_size": "landscape_16_9" if canonical.aspect_ratio == "16:9" else "portrait_16_9",
            "num_inference_steps": 50 if canonical.hd else 28,
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

        body: dict[str, Any] = {"prompt": request.prompt, **params}
        if request.reference_image_url:
            body["image_url"] = request.reference_image_url

        data = await self.call(
            "falSubmitTask",
            "POST",
            f"/api/fal/{model}",
            credential,
            body=body,
            metadata=self.submission_metadata(request, model=model, **params),
            context=context,
        )

        task_id = TASK_ID.require(data, self.name)
        logger.info(f"[{self.display_name}] Request queued: {task_id} ({model})")

        raw_status = data.get("status")
        return TaskHandle(
            id=task_id,
            provider=self.name,
            status=FAL_STATUSES.normalize(raw_status) if raw_status else CanonicalStatus.QUEUED,
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
            "falCheckStatus",
            "GET",
            f"/api/fal/{app_id(self.model)}/requests/{task_id}/status",
            credential,
            metadata={"task_id": task_id},
            context=context,
            log_type="polling",
        )
        payload = parse_payload(FalStatus, data, self.name)

        status = FAL_STATUSES.normalize(payload.status)
        progress = _PROGRESS[status]
        await self.emit_progress(on_progress, progress)

        if status is CanonicalStatus.ERROR:
            return self.error_result(task_id, progress, first_message(payload.error), "Image generation failed", raw=data)

        status, urls, reason = await self.resolve_output(task_id, status, [], credential, context)
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

    async def fetch_content_urls(
        self,
        task_id: str,
        credential: str,
        context: Optional[CallContext] = None,
    ) -> list[str]:
        try:
            data = await self.call(
                "falGetResult",
                "GET",
                f"/api/fal/{app_id(self.model)}/requests/{task_id}",
                credential,
                metadata={"task_id": task_id},
                context=context,
                log_type="polling",
            )
            result = parse_payload(FalResult, data, self.name)
        except GenerationError as e:
            logger.warning(f"[{self.display_name}] Result lookup failed for {task_id}: {e}")
            return []

        return string_urls(image.url for image in result.images)

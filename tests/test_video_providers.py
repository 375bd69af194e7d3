"""
Tests for the Sora backend adapters (sutu, yunwu, dayuapi, kie).

Each test drives one submit or one status check against FakeProxy and checks
the request that went out and the normalized result that came back.
"""

import json

import httpx
import pytest

from generation.errors import ConfigurationError, DataExtractionError, ProviderError
from generation.providers import DayuapiProvider, KieProvider, SutuProvider, YunwuProvider
from generation.providers.base import NO_OUTPUT_REASON
from generation.types import CanonicalStatus, GenerationConfig, GenerationRequest

HD_LANDSCAPE = GenerationConfig(aspect_ratio="16:9", duration="10", hd=True)


def make_request(config=HD_LANDSCAPE, reference=None):
    return GenerationRequest(prompt="A lighthouse at dusk", reference_image_url=reference, config=config)


class TestSutuProvider:
    """Test the sutu Sora adapter."""

    """Sutu: pass-through parameters, quality-based compliance."""

    @pytest.mark.asyncio
    async def test_submit_builds_body_and_extracts_id(self, proxy, transport):
        proxy.add("POST", "/api/sora/generations", {"id": "task-1", "status": "pending"})

        handle = await SutuProvider(transport).submit_task(make_request(reference="https://img/ref.png"), "sutu-key")

        assert handle.id == "task-1"
        assert handle.provider == "sutu"
        assert handle.status == CanonicalStatus.QUEUED

        request = proxy.requests[0]
        assert request.headers["X-API-Key"] == "sutu-key"
        body = proxy.body()
        assert body["model"] == "sora-2"
        assert body["images"] == ["https://img/ref.png"]
        assert body["watermark"] is True
        assert body["private"] is True
        assert body["duration"] == "10"
        assert body["hd"] is True

    @pytest.mark.asyncio
    async def test_submit_finds_nested_task_id(self, proxy, transport):
        proxy.add("POST", "/api/sora/generations", {"data": {"task_id": "t-9"}})
        handle = await SutuProvider(transport).submit_task(make_request(), "sutu-key")
        assert handle.id == "t-9"

    @pytest.mark.asyncio
    async def test_submit_without_task_id_raises(self, proxy, transport):
        proxy.add("POST", "/api/sora/generations", {"ok": True})

        with pytest.raises(DataExtractionError) as exc_info:
            await SutuProvider(transport).submit_task(make_request(), "sutu-key")

        assert exc_info.value.raw == {"ok": True}
        assert exc_info.value.tried[0] == "id"

    @pytest.mark.asyncio
    async def test_missing_credential_fails_before_network(self, proxy, transport):
        with pytest.raises(ConfigurationError):
            await SutuProvider(transport).submit_task(make_request(), "")
        assert proxy.requests == []

    @pytest.mark.asyncio
    async def test_completed_result(self, proxy, transport, progress_log):
        proxy.add("GET", "/api/sora/generations/task-1", {
            "id": "task-1",
            "status": "completed",
            "progress": 100,
            "quality": "standard",
            "data": {
                "output": "https://cdn/video.mp4",
                "watermark_output": "https://cdn/video-wm.mp4",
                "duration": 10,
            },
        })

        result = await SutuProvider(transport).check_status("task-1", "sutu-key", progress_log)

        assert result.status == CanonicalStatus.COMPLETED
        assert result.video_url == "https://cdn/video.mp4"
        assert result.watermarked_video_url == "https://cdn/video-wm.mp4"
        assert result.duration == "10"
        assert result.is_compliant is True
        assert progress_log.calls == [100]

    @pytest.mark.asyncio
    async def test_non_standard_quality_is_a_violation(self, proxy, transport):
        proxy.add("GET", "/api/sora/generations/task-1", {
            "status": "completed",
            "quality": "content_violation",
            "data": {"output": "https://cdn/video.mp4"},
        })

        result = await SutuProvider(transport).check_status("task-1", "sutu-key")

        assert result.status == CanonicalStatus.ERROR
        assert result.is_compliant is False
        assert result.violation_reason == "content_violation"

    @pytest.mark.asyncio
    async def test_unknown_status_is_processing(self, proxy, transport, progress_log):
        """An unmapped vendor status keeps the task pending."""
        proxy.add("GET", "/api/sora/generations/task-1", {"status": "warming_up", "progress": 30})

        result = await SutuProvider(transport).check_status("task-1", "sutu-key", progress_log)

        assert result.status == CanonicalStatus.PROCESSING
        assert result.progress == 30
        assert progress_log.calls == [30]

    @pytest.mark.asyncio
    async def test_completed_without_url_is_downgraded(self, proxy, transport):
        proxy.add("GET", "/api/sora/generations/task-1", {"status": "completed", "progress": 100})

        result = await SutuProvider(transport).check_status("task-1", "sutu-key")

        assert result.status == CanonicalStatus.ERROR
        assert result.video_url is None
        assert result.violation_reason == NO_OUTPUT_REASON
        assert len(proxy.requests) == 1

    @pytest.mark.asyncio
    async def test_http_error_raises_provider_error(self, proxy, transport):
        proxy.add("GET", "/api/sora/generations/task-1", httpx.Response(500, text="upstream down"))

        with pytest.raises(ProviderError) as exc_info:
            await SutuProvider(transport).check_status("task-1", "sutu-key")

        assert exc_info.value.status_code == 500
        assert exc_info.value.raw == {"error_text": "upstream down"}

    @pytest.mark.asyncio
    async def test_failing_progress_callback_is_ignored(self, proxy, transport):
        proxy.add("GET", "/api/sora/generations/task-1", {"status": "running", "progress": 10})

        def broken(percent):
            raise RuntimeError("ui gone")

        result = await SutuProvider(transport).check_status("task-1", "sutu-key", broken)
        assert result.status == CanonicalStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_async_progress_callback_is_awaited(self, proxy, transport):
        proxy.add("GET", "/api/sora/generations/task-1", {"status": "running", "progress": 55})
        seen = []

        async def on_progress(percent):
            seen.append(percent)

        await SutuProvider(transport).check_status("task-1", "sutu-key", on_progress)
        assert seen == [55]


class TestYunwuProvider:
    @pytest.mark.asyncio
    async def test_submit_uses_pro_model_for_hd(self, proxy, transport):
        proxy.add("POST", "/api/yunwu/create", {"id": "yw-1", "status": "pending"})

        handle = await YunwuProvider(transport).submit_task(make_request(), "yunwu-key")

        assert handle.id == "yw-1"
        assert handle.created_at.tzinfo is not None
        body = proxy.body()
        assert body["model"] == "sora-2-pro"
        assert body["orientation"] == "landscape"
        assert body["duration"] == 10
        assert body["size"] == "large"
        assert body["watermark"] is False

    @pytest.mark.asyncio
    async def test_query_reads_detail(self, proxy, transport):
        proxy.add("GET", "/api/yunwu/query", {
            "id": "yw-1",
            "status": "completed",
            "detail": {"generations": [{"url": "https://cdn/y.mp4"}], "input": {"duration": 15}},
        })

        result = await YunwuProvider(transport).check_status("yw-1", "yunwu-key")

        assert proxy.requests[0].url.params["id"] == "yw-1"
        assert result.status == CanonicalStatus.COMPLETED
        assert result.video_url == "https://cdn/y.mp4"
        assert result.duration == "15"

    @pytest.mark.asyncio
    async def test_status_and_progress_fall_back_to_detail(self, proxy, transport):
        proxy.add("GET", "/api/yunwu/query", {"id": "yw-1", "detail": {"status": "in_progress", "progress_pct": 45}})

        result = await YunwuProvider(transport).check_status("yw-1", "yunwu-key")

        assert result.status == CanonicalStatus.PROCESSING
        assert result.progress == 45

    @pytest.mark.asyncio
    async def test_failure_reason(self, proxy, transport):
        proxy.add("GET", "/api/yunwu/query", {"status": "failed", "detail": {"failure_reason": "policy"}})

        result = await YunwuProvider(transport).check_status("yw-1", "yunwu-key")

        assert result.status == CanonicalStatus.ERROR
        assert result.violation_reason == "policy"
        assert result.is_compliant is False

    @pytest.mark.asyncio
    async def test_null_detail_containers_while_processing(self, proxy, transport):
        proxy.add("GET", "/api/yunwu/query", {
            "id": "yw-1",
            "status": "processing",
            "progress": 20,
            "detail": {"generations": None, "input": None},
        })

        result = await YunwuProvider(transport).check_status("yw-1", "yunwu-key")

        assert result.status == CanonicalStatus.PROCESSING
        assert result.progress == 20
        assert result.video_url is None


class TestDayuapiProvider:
    """Test the dayuapi adapter, including the content fallback."""

    @pytest.mark.asyncio
    async def test_submit_sends_composed_model(self, proxy, transport):
        proxy.add("POST", "/api/dayuapi/create", {"id": "d-1", "status": "queued"})
        config = GenerationConfig(aspect_ratio="16:9", duration="25", hd=False)

        handle = await DayuapiProvider(transport).submit_task(
            make_request(config, reference="https://img/ref.png"), "dayu-key"
        )

        assert handle.id == "d-1"
        assert proxy.body() == {
            "prompt": "A lighthouse at dusk",
            "model": "sora2-pro-landscape-25s",
            "image_url": "https://img/ref.png",
        }

    @pytest.mark.asyncio
    async def test_completed_with_url(self, proxy, transport):
        proxy.add("GET", "/api/dayuapi/query", {"id": "d-1", "status": "completed", "video_url": "https://cdn/d.mp4"})

        result = await DayuapiProvider(transport).check_status("d-1", "dayu-key")

        assert result.video_url == "https://cdn/d.mp4"
        assert proxy.paths() == ["/api/dayuapi/query"]

    @pytest.mark.asyncio
    async def test_missing_url_uses_content_endpoint(self, proxy, transport):
        proxy.add("GET", "/api/dayuapi/query", {"id": "d-1", "status": "completed", "progress": 100})
        proxy.add("GET", "/api/dayuapi/content", {"url": "https://cdn/d.mp4"})

        result = await DayuapiProvider(transport).check_status("d-1", "dayu-key")

        assert result.status == CanonicalStatus.COMPLETED
        assert result.video_url == "https://cdn/d.mp4"
        assert proxy.paths() == ["/api/dayuapi/query", "/api/dayuapi/content"]

    @pytest.mark.asyncio
    async def test_content_without_url_downgrades(self, proxy, transport):
        proxy.add("GET", "/api/dayuapi/query", {"id": "d-1", "status": "completed"})
        proxy.add("GET", "/api/dayuapi/content", {})

        result = await DayuapiProvider(transport).check_status("d-1", "dayu-key")

        assert result.status == CanonicalStatus.ERROR
        assert result.progress == 100
        assert result.violation_reason == NO_OUTPUT_REASON

    @pytest.mark.asyncio
    async def test_content_http_error_downgrades(self, proxy, transport):
        proxy.add("GET", "/api/dayuapi/query", {"id": "d-1", "status": "completed"})
        proxy.add("GET", "/api/dayuapi/content", httpx.Response(502, text="bad gateway"))

        result = await DayuapiProvider(transport).check_status("d-1", "dayu-key")

        assert result.status == CanonicalStatus.ERROR
        assert len(proxy.requests) == 2

    @pytest.mark.asyncio
    async def test_failed(self, proxy, transport):
        proxy.add("GET", "/api/dayuapi/query", {"id": "d-1", "status": "failed", "error": "moderation"})

        result = await DayuapiProvider(transport).check_status("d-1", "dayu-key")

        assert result.status == CanonicalStatus.ERROR
        assert result.violation_reason == "moderation"


class TestKieProvider:
    @pytest.mark.asyncio
    async def test_submit_text_to_video(self, proxy, transport):
        proxy.add("POST", "/api/kie/create", {"code": 200, "msg": "success", "data": {"taskId": "k-1"}})
        config = GenerationConfig(aspect_ratio="9:16", duration="15", hd=True)

        handle = await KieProvider(transport).submit_task(make_request(config), "kie-key")

        assert handle.id == "k-1"
        assert handle.status == CanonicalStatus.QUEUED
        body = proxy.body()
        assert body["model"] == "sora-2-text-to-video"
        assert body["input"] == {
            "prompt": "A lighthouse at dusk",
            "aspect_ratio": "portrait",
            "n_frames": "15",
            "remove_watermark": True,
        }

    @pytest.mark.asyncio
    async def test_submit_image_to_video(self, proxy, transport):
        proxy.add("POST", "/api/kie/create", {"code": 200, "data": {"taskId": "k-2"}})

        await KieProvider(transport).submit_task(make_request(reference="https://img/ref.png"), "kie-key")

        body = proxy.body()
        assert body["model"] == "sora-2-image-to-video"
        assert body["input"]["image_urls"] == ["https://img/ref.png"]

    @pytest.mark.asyncio
    async def test_embedded_error_code_raises(self, proxy, transport):
        proxy.add("POST", "/api/kie/create", {"code": 402, "msg": "Insufficient credits"})

        with pytest.raises(ProviderError) as exc_info:
            await KieProvider(transport).submit_task(make_request(), "kie-key")

        assert exc_info.value.status_code == 402
        assert "Insufficient credits" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_success_reads_result_json(self, proxy, transport, progress_log):
        proxy.add("GET", "/api/kie/query", {
            "code": 200,
            "data": {
                "taskId": "k-1",
                "state": "success",
                "resultJson": json.dumps({"resultUrls": ["https://cdn/k.mp4"]}),
            },
        })

        result = await KieProvider(transport).check_status("k-1", "kie-key", progress_log)

        assert proxy.requests[0].url.params["taskId"] == "k-1"
        assert result.status == CanonicalStatus.COMPLETED
        assert result.progress == 100
        assert result.video_url == "https://cdn/k.mp4"
        assert progress_log.calls == [100]

    @pytest.mark.asyncio
    async def test_generating(self, proxy, transport):
        proxy.add("GET", "/api/kie/query", {"code": 200, "data": {"state": "generating", "progress": 40}})

        result = await KieProvider(transport).check_status("k-1", "kie-key")

        assert result.status == CanonicalStatus.PROCESSING
        assert result.progress == 40

    @pytest.mark.asyncio
    async def test_fail_state(self, proxy, transport):
        proxy.add("GET", "/api/kie/query", {"code": 200, "data": {"state": "fail", "failMsg": "bad prompt"}})

        result = await KieProvider(transport).check_status("k-1", "kie-key")

        assert result.status == CanonicalStatus.ERROR
        assert result.violation_reason == "bad prompt"

    @pytest.mark.asyncio
    async def test_success_without_urls_is_downgraded(self, proxy, transport):
        proxy.add("GET", "/api/kie/query", {"code": 200, "data": {"state": "success", "resultJson": "{}"}})

        result = await KieProvider(transport).check_status("k-1", "kie-key")

        assert result.status == CanonicalStatus.ERROR
        assert result.violation_reason == NO_OUTPUT_REASON

"""
Tests for the sora2 model and its runtime backend selection.
"""

import pytest

from generation.errors import UnknownProviderError, ValidationError
from generation.providers import Sora2Provider
from generation.registry import build_sora_backends
from generation.types import CanonicalStatus, GenerationRequest, VideoGenerationResult, VideoModelConfig


def make_sora2(transport, backend="dayuapi"):
    selected = [backend]
    provider = Sora2Provider(backends=build_sora_backends(transport), backend_resolver=lambda: selected[0])
    return provider, selected


class TestConfigMapping:
    def test_quality_maps_to_hd(self, transport):
        provider, _ = make_sora2(transport)
        params = provider.transform_config({"aspect_ratio": "16:9", "duration": "15", "quality": "standard"})
        assert params == {"aspect_ratio": "16:9", "duration": "15", "hd": False}

    def test_video_model_config(self, transport):
        provider, _ = make_sora2(transport)
        params = provider.transform_config(VideoModelConfig(aspect_ratio="9:16", duration="10", quality="pro"))
        assert params["hd"] is True

    def test_invalid_quality(self, transport):
        provider, _ = make_sora2(transport)
        with pytest.raises(ValidationError) as exc_info:
            provider.transform_config({"aspect_ratio": "16:9", "duration": "10", "quality": "ultra"})
        assert exc_info.value.error_code == "INVALID_QUALITY"


class TestDelegation:
    """Test routing to the selected Sora backend."""

    @pytest.mark.asyncio
    async def test_submit_delegates_and_estimates_time(self, proxy, transport):
        proxy.add("POST", "/api/dayuapi/create", {"id": "d-1"})
        provider, _ = make_sora2(transport, "dayuapi")
        request = GenerationRequest(
            prompt="Harbor at night",
            config=VideoModelConfig(aspect_ratio="16:9", duration="15", quality="pro"),
        )

        handle = await provider.submit_task(request, "dayu-key")

        assert handle.id == "d-1"
        assert handle.provider == "dayuapi"
        assert handle.estimated_time == 150
        assert proxy.body()["model"] == "sora2-pro-landscape-hd-15s"

    @pytest.mark.asyncio
    async def test_backend_is_resolved_per_call(self, proxy, transport):
        proxy.add("POST", "/api/dayuapi/create", {"id": "d-1"})
        proxy.add("POST", "/api/kie/create", {"code": 200, "data": {"taskId": "k-1"}})
        provider, selected = make_sora2(transport, "dayuapi")
        request = GenerationRequest(prompt="Harbor at night", config=VideoModelConfig())

        first = await provider.submit_task(request, "key")
        selected[0] = "kie"
        second = await provider.submit_task(request, "key")

        assert first.provider == "dayuapi"
        assert second.provider == "kie"

    @pytest.mark.asyncio
    async def test_explicit_backend_wins(self, proxy, transport):
        proxy.add("POST", "/api/sora/generations", {"id": "s-1"})
        provider, _ = make_sora2(transport, "kie")

        handle = await provider.submit_task(GenerationRequest(prompt="p"), "sutu-key", backend="sutu")

        assert handle.provider == "sutu"
        assert proxy.paths() == ["/api/sora/generations"]

    def test_unknown_backend(self, transport):
        provider, _ = make_sora2(transport, "veo")
        with pytest.raises(UnknownProviderError):
            provider.resolve_backend()

    @pytest.mark.asyncio
    async def test_check_status_adds_video_fields(self, proxy, transport):
        proxy.add("GET", "/api/sora/generations/s-1", {
            "id": "s-1",
            "status": "completed",
            "quality": "standard",
            "data": {"output": "https://cdn/s.mp4", "duration": 15},
        })
        provider, _ = make_sora2(transport, "sutu")

        result = await provider.check_status("s-1", "sutu-key")

        assert isinstance(result, VideoGenerationResult)
        assert result.status == CanonicalStatus.COMPLETED
        assert result.video_url == "https://cdn/s.mp4"
        assert result.video_duration == 15
        assert result.video_resolution == "1280x720"

    @pytest.mark.asyncio
    async def test_check_status_without_duration(self, proxy, transport):
        proxy.add("GET", "/api/kie/query", {"code": 200, "data": {"state": "generating"}})
        provider, _ = make_sora2(transport, "kie")

        result = await provider.check_status("k-1", "kie-key")

        assert result.status == CanonicalStatus.PROCESSING
        assert result.video_duration is None

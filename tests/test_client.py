"""
Tests for GenerationClient: credential resolution, sora2 backend tracking
and submit -> wait.
"""

import json

import pytest

from core.config import APIConfig, Config
from generation.client import GenerationClient
from generation.errors import ConfigurationError, UnknownProviderError
from generation.providers import Sora2Provider
from generation.registry import build_sora_backends
from generation.types import CanonicalStatus, VideoGenerationResult

KIE_DONE = {
    "code": 200,
    "data": {"taskId": "k-1", "state": "success", "resultJson": json.dumps({"resultUrls": ["https://cdn/k.mp4"]})},
}


def make_config():
    return Config(api=APIConfig(
        proxy_base="http://proxy.test",
        sutu_api_key="sutu-key",
        yunwu_api_key="",
        dayuapi_api_key="",
        kie_api_key="kie-key",
        fal_api_key="",
    ))


@pytest.fixture
def registry(transport):
    """Sora backends plus a sora2 model pinned to the kie backend."""
    registry = build_sora_backends(transport)
    registry.register(Sora2Provider(
        backends=build_sora_backends(transport),
        backend_resolver=lambda: "kie",
        transport=transport,
    ))
    return registry


@pytest.fixture
def client(registry, transport):
    return GenerationClient(registry=registry, config=make_config(), transport=transport)


class TestGenerationClient:
    """Test credential resolution, routing and the submit-and-wait flow."""

    def test_sora2_uses_backend_credential(self, client):
        assert client.credential_for("sora2") == "kie-key"
        assert client.credential_for("sora2", backend="sutu") == "sutu-key"

    def test_missing_credential(self, client):
        with pytest.raises(ConfigurationError) as exc_info:
            client.credential_for("dayuapi")
        assert exc_info.value.error_code == "MISSING_CREDENTIAL"

    def test_unknown_provider(self, client):
        with pytest.raises(UnknownProviderError):
            client.provider("runway")

    @pytest.mark.asyncio
    async def test_missing_credential_makes_no_request(self, client, proxy):
        with pytest.raises(ConfigurationError):
            await client.submit("dayuapi", "prompt")
        assert proxy.requests == []

    @pytest.mark.asyncio
    async def test_sora2_handle_routes_the_poll(self, client, proxy):
        proxy.add("POST", "/api/kie/create", {"code": 200, "data": {"taskId": "k-1"}})
        proxy.add("GET", "/api/kie/query", KIE_DONE)

        handle = await client.submit("sora2", "Harbor", config={"aspect_ratio": "9:16", "duration": "15", "quality": "pro"})
        result = await client.check("sora2", handle)

        assert handle.provider == "kie"
        assert handle.estimated_time == 150
        assert proxy.requests[0].headers["X-API-Key"] == "kie-key"
        assert isinstance(result, VideoGenerationResult)
        assert result.video_url == "https://cdn/k.mp4"

    @pytest.mark.asyncio
    async def test_wait_reports_progress(self, proxy, registry, transport):
        progress = []
        client = GenerationClient(
            registry=registry,
            config=make_config(),
            transport=transport,
            on_progress=lambda task_id, percent: progress.append((task_id, percent)),
        )
        proxy.add(
            "GET",
            "/api/kie/query",
            {"code": 200, "data": {"state": "generating", "progress": 30}},
            KIE_DONE,
        )

        result = await client.wait("kie", "k-1", interval=0, timeout=30)

        assert result.status == CanonicalStatus.COMPLETED
        assert progress == [("k-1", 30), ("k-1", 100)]

    @pytest.mark.asyncio
    async def test_generate(self, client, proxy):
        proxy.add("POST", "/api/sora/generations", {"id": "s-1", "status": "queued"})
        proxy.add("GET", "/api/sora/generations/s-1", {
            "id": "s-1", "status": "completed", "data": {"output": "https://cdn/s.mp4"},
        })

        result = await client.generate(
            "sutu", "Harbor", config={"aspect_ratio": "16:9", "duration": "10", "hd": False}, interval=0, timeout=30
        )

        assert result.video_url == "https://cdn/s.mp4"
        assert proxy.paths() == ["/api/sora/generations", "/api/sora/generations/s-1"]

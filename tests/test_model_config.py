"""
Tests for the remote model catalog loader.
"""

import httpx
import pytest

from generation.errors import ProviderError
from generation.model_config import CachedValue, ModelConfigLoader, is_fresh, summarize

CATALOG_URL = "http://admin.test/api/admin/config"

CATALOG = {
    "platforms": [
        {
            "code": "yunwuapi",
            "name": "Yunwu",
            "enabled": True,
            "models": [
                {
                    "code": "veo",
                    "name": "Veo",
                    "enabled": True,
                    "subModels": [
                        {"code": "veo3", "name": "Veo 3", "enabled": True},
                        {"code": "veo3-fast", "name": "Veo 3 Fast", "enabled": True, "default": True},
                        {"code": "veo2", "name": "Veo 2", "enabled": False},
                    ],
                },
                {"code": "hidden", "name": "Hidden", "enabled": False, "subModels": []},
            ],
        },
        {"code": "legacy", "name": "Legacy", "enabled": False, "models": []},
    ]
}


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestIsFresh:
    def test_nothing_cached(self):
        assert is_fresh(None, 0.0, 60) is False

    def test_window(self):
        cached = CachedValue(value={}, fetched_at=100.0)
        assert is_fresh(cached, 159.9, 60) is True
        assert is_fresh(cached, 160.0, 60) is False


class TestModelConfigLoader:
    """Test remote catalog loading, caching and degradation."""

    @pytest.fixture
    def requests(self):
        return []

    @pytest.fixture
    def clock(self):
        return FakeClock()

    def make_loader(self, requests, clock, status, **response):
        def handler(request):
            requests.append(request)
            return httpx.Response(status, **response)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ModelConfigLoader(url=CATALOG_URL, ttl=60, client=client, clock=clock)

    @pytest.mark.asyncio
    async def test_sub_model_lookups(self, requests, clock):
        loader = self.make_loader(requests, clock, 200, json=CATALOG)

        assert await loader.get_sub_models("yunwuapi", "veo") == ["veo3", "veo3-fast"]
        assert await loader.get_default_sub_model("yunwuapi", "veo") == "veo3-fast"
        assert await loader.get_sub_model_name("yunwuapi", "veo", "veo3") == "Veo 3"
        assert await loader.get_sub_model_name("yunwuapi", "veo", "veo9") == "veo9"
        assert await loader.get_sub_models("yunwuapi", "sora") == []
        assert await loader.get_sub_models("nowhere", "veo") == []

    @pytest.mark.asyncio
    async def test_all_models_skips_disabled_entries(self, requests, clock):
        loader = self.make_loader(requests, clock, 200, json=CATALOG)

        config = await loader.get_all_models_config()

        assert config == {"yunwuapi": {"veo": ["veo3", "veo3-fast"]}}
        assert summarize(config) == "yunwuapi/veo: veo3, veo3-fast"
        assert (await loader.get_all_sub_model_names())["veo2"] == "Veo 2"

    @pytest.mark.asyncio
    async def test_cache_expires_after_ttl(self, requests, clock):
        loader = self.make_loader(requests, clock, 200, json=CATALOG)

        await loader.get_sub_models("yunwuapi", "veo")
        clock.now = 59.0
        await loader.get_sub_models("yunwuapi", "veo")
        assert len(requests) == 1

        clock.now = 61.0
        await loader.get_sub_models("yunwuapi", "veo")
        assert len(requests) == 2

        loader.clear_cache()
        await loader.get_sub_models("yunwuapi", "veo")
        assert len(requests) == 3

    @pytest.mark.asyncio
    async def test_first_enabled_is_default_without_flag(self, requests, clock):
        catalog = {"platforms": [{"code": "p", "models": [{"code": "m", "subModels": [
            {"code": "a", "enabled": False},
            {"code": "b"},
            {"code": "c"},
        ]}]}]}
        loader = self.make_loader(requests, clock, 200, json=catalog)

        assert await loader.get_default_sub_model("p", "m") == "b"

    @pytest.mark.asyncio
    async def test_unreachable_catalog_degrades(self, requests, clock):
        loader = self.make_loader(requests, clock, 503, text="maintenance")

        assert await loader.get_sub_models("yunwuapi", "veo") == []
        assert await loader.get_default_sub_model("yunwuapi", "veo") is None
        assert await loader.get_all_models_config() == {}
        assert await loader.get_sub_model_name("yunwuapi", "veo", "veo3") == "veo3"

    @pytest.mark.asyncio
    async def test_load_raises(self, requests, clock):
        loader = self.make_loader(requests, clock, 503, text="maintenance")

        with pytest.raises(ProviderError):
            await loader.load()

"""
Remote model catalog loader.

Reads the platform -> model -> submodel configuration published by the
admin API and caches it for a short time. Lookups degrade to empty values
(and log) when the admin API is unreachable so generation can continue on
local defaults.

Usage:
    loader = get_model_config_loader()
    submodels = await loader.get_sub_models("yunwuapi", "veo")
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import DataExtractionError, GenerationError, ProviderError, TransportError

logger = logging.getLogger(__name__)

V = TypeVar("V")

PROVIDER = "model_config"


class SubModelConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    code: str
    name: str = ""
    description: Optional[str] = None
    enabled: bool = True
    default: bool = False


class PlatformModelConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    code: str
    name: str = ""
    enabled: bool = True
    sub_models: list[SubModelConfig] = Field(default_factory=list, alias="subModels")
    default_sub_model: Optional[str] = Field(default=None, alias="defaultSubModel")


class PlatformConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    code: str
    name: str = ""
    enabled: bool = True
    models: list[PlatformModelConfig] = Field(default_factory=list)


class ModelConfiguration(BaseModel):
    model_config = ConfigDict(extra="ignore")

    platforms: list[PlatformConfig] = Field(default_factory=list)

    def find_model(self, platform_code: str, model_code: str) -> Optional[PlatformModelConfig]:
        for platform in self.platforms:
            if platform.code == platform_code:
                for model in platform.models:
                    if model.code == model_code:
                        return model
                logger.warning(f"[ModelConfig] Model not found: {model_code}")
                return None
        logger.warning(f"[ModelConfig] Platform not found: {platform_code}")
        return None


@dataclass(frozen=True)
class CachedValue(Generic[V]):
    value: V
    fetched_at: float


def is_fresh(cached: Optional[CachedValue], now: float, ttl: float) -> bool:
    """Whether a cached value may still be served."""
    return cached is not None and (now - cached.fetched_at) < ttl


class ModelConfigLoader:
    """Fetches and caches the remote model configuration."""

    def __init__(
        self,
        url: Optional[str] = None,
        ttl: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if url is None or ttl is None:
            from core.config import get_config

            catalog = get_config().catalog
            url = url or catalog.url
            ttl = ttl if ttl is not None else catalog.cache_ttl_seconds

        self.url = url
        self.ttl = ttl
        self._client = client
        self._clock = clock
        self._cache: Optional[CachedValue[ModelConfiguration]] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def load(self) -> ModelConfiguration:
        """
        Fetch the configuration, bypassing the cache.

        Raises:
            TransportError, ProviderError, DataExtractionError
        """
        client = await self._get_client()
        try:
            response = await client.get(self.url)
        except httpx.RequestError as e:
            raise TransportError(f"Failed to load model config: {e}", provider=PROVIDER, cause=e) from e

        if not response.is_success:
            raise ProviderError(PROVIDER, response.status_code, "Failed to load config", raw=response.text)

        try:
            return ModelConfiguration.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise DataExtractionError(provider=PROVIDER, field_name="platforms", raw=response.text) from e

    async def load_cached(self) -> ModelConfiguration:
        """Serve from cache while fresh, otherwise fetch and cache."""
        now = self._clock()
        if is_fresh(self._cache, now, self.ttl):
            return self._cache.value

        config = await self.load()
        self._cache = CachedValue(value=config, fetched_at=now)
        return config

    def clear_cache(self):
        self._cache = None

    async def _safe_config(self, purpose: str) -> Optional[ModelConfiguration]:
        try:
            return await self.load_cached()
        except GenerationError as e:
            logger.error(f"[ModelConfig] Failed to {purpose}: {e}")
            return None

    async def get_sub_models(self, platform_code: str, model_code: str) -> list[str]:
        """Enabled submodel codes for a platform model."""
        config = await self._safe_config("get submodels")
        model = config.find_model(platform_code, model_code) if config else None
        if model is None:
            return []
        return [sm.code for sm in model.sub_models if sm.enabled]

    async def get_default_sub_model(self, platform_code: str, model_code: str) -> Optional[str]:
        """The enabled submodel flagged default, else the first enabled one."""
        config = await self._safe_config("get default submodel")
        model = config.find_model(platform_code, model_code) if config else None
        if model is None:
            return None

        enabled = [sm for sm in model.sub_models if sm.enabled]
        for sub_model in enabled:
            if sub_model.default:
                return sub_model.code
        return enabled[0].code if enabled else None

    async def get_sub_model_name(self, platform_code: str, model_code: str, sub_model_code: str) -> str:
        config = await self._safe_config("get submodel name")
        model = config.find_model(platform_code, model_code) if config else None
        if model is None:
            return sub_model_code
        for sub_model in model.sub_models:
            if sub_model.code == sub_model_code:
                return sub_model.name or sub_model_code
        return sub_model_code

    async def get_all_models_config(self) -> dict[str, dict[str, list[str]]]:
        """platform code -> model code -> enabled submodel codes (enabled entries only)."""
        config = await self._safe_config("get all models config")
        if config is None:
            return {}

        result: dict[str, dict[str, list[str]]] = {}
        for platform in config.platforms:
            if not platform.enabled:
                continue
            result[platform.code] = {
                model.code: [sm.code for sm in model.sub_models if sm.enabled]
                for model in platform.models
                if model.enabled
            }
        return result

    async def get_all_sub_model_names(self) -> dict[str, str]:
        config = await self._safe_config("get all submodel names")
        if config is None:
            return {}
        return {
            sub_model.code: sub_model.name
            for platform in config.platforms
            for model in platform.models
            for sub_model in model.sub_models
        }


# Global loader instance
_loader: Optional[ModelConfigLoader] = None


def get_model_config_loader() -> ModelConfigLoader:
    global _loader
    if _loader is None:
        _loader = ModelConfigLoader()
    return _loader


def summarize(config: dict[str, Any]) -> str:
    """One line per platform model, for CLI output."""
    lines = []
    for platform_code, models in config.items():
        for model_code, sub_models in models.items():
            lines.append(f"{platform_code}/{model_code}: {', '.join(sub_models) or '-'}")
    return "\n".join(lines)

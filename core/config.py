"""
Configuration management for the generation gateway.

Centralizes all configuration including:
- Local proxy endpoint and per-provider API keys
- Runtime selection of the Sora backend behind the sora2 model
- Model fallback and notification settings
- Remote model catalog endpoint
"""

import os
from dataclasses import dataclass, field
from typing import Optional


# Credential lookup key (environment variable) per upstream service
CREDENTIAL_ENV_VARS: dict[str, str] = {
    "sutu": "SUTU_API_KEY",
    "yunwu": "YUNWU_API_KEY",
    "dayuapi": "DAYUAPI_API_KEY",
    "kie": "KIE_API_KEY",
    "kie_image": "KIE_API_KEY",
    "kie_gpt4o": "KIE_API_KEY",
    "fal_image": "FAL_API_KEY",
}


@dataclass
class APIConfig:
    """Proxy endpoint and API keys for the upstream generation services."""

    # Every adapter call goes through the local proxy
    proxy_base: str = field(
        default_factory=lambda: os.getenv("GENERATION_PROXY_BASE", "http://localhost:3001")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.getenv("GENERATION_REQUEST_TIMEOUT", "60"))
    )

    sutu_api_key: str = field(default_factory=lambda: os.getenv("SUTU_API_KEY", ""))
    yunwu_api_key: str = field(default_factory=lambda: os.getenv("YUNWU_API_KEY", ""))
    dayuapi_api_key: str = field(default_factory=lambda: os.getenv("DAYUAPI_API_KEY", ""))
    kie_api_key: str = field(default_factory=lambda: os.getenv("KIE_API_KEY", ""))
    fal_api_key: str = field(default_factory=lambda: os.getenv("FAL_API_KEY", ""))

    def credential_for(self, provider: str) -> str:
        """
        Resolve the API key for a provider.

        Raises:
            ConfigurationError: If the provider has no lookup key or the key is empty
        """
        from generation.errors import ConfigurationError

        env_var = CREDENTIAL_ENV_VARS.get(provider)
        if env_var is None:
            raise ConfigurationError(
                f"No credential lookup key defined for provider: {provider}",
                error_code="UNKNOWN_CREDENTIAL",
                provider=provider,
            )

        attr = env_var.lower()
        value = getattr(self, attr, "") or ""
        if not value.strip():
            raise ConfigurationError(
                f"{env_var} not configured",
                error_code="MISSING_CREDENTIAL",
                provider=provider,
            )
        return value.strip()


@dataclass
class VideoConfig:
    """Video model selection."""

    # Concrete backend behind the sora2 model (sutu, yunwu, dayuapi, kie)
    sora_backend: str = field(default_factory=lambda: os.getenv("SORA_BACKEND", "sutu"))
    default_aspect_ratio: str = "16:9"
    default_duration: str = "10"
    default_quality: str = "pro"


@dataclass
class ImageConfig:
    """Default model identifiers for the image providers."""

    kie_market_model: str = field(
        default_factory=lambda: os.getenv("KIE_IMAGE_MODEL", "google/nano-banana")
    )
    fal_model: str = field(default_factory=lambda: os.getenv("FAL_IMAGE_MODEL", "fal-ai/flux/dev"))


@dataclass
class FallbackConfig:
    """Model fallback and notification settings."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("MODEL_FALLBACK_ENABLED", "true").lower() == "true"
    )
    max_attempts: int = 3
    failure_threshold: int = 3  # Consecutive failures before a model is skipped
    skip_window_seconds: float = 3600.0
    display_seconds: float = 5.0
    board_size: int = 20


@dataclass
class CatalogConfig:
    """Remote model catalog (platform -> model -> submodel)."""

    url: str = field(
        default_factory=lambda: os.getenv(
            "MODEL_CATALOG_URL", "http://localhost:3001/api/admin/config"
        )
    )
    cache_ttl_seconds: float = 60.0


@dataclass
class Config:
    """Main configuration class."""

    api: APIConfig = field(default_factory=APIConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    image: ImageConfig = field(default_factory=ImageConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)

    # Caller-side polling defaults
    poll_interval_seconds: float = 5.0
    poll_timeout_seconds: float = 900.0

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls()

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        from generation.errors import ConfigurationError

        issues = []

        if self.video.sora_backend not in ("sutu", "yunwu", "dayuapi", "kie"):
            issues.append(f"SORA_BACKEND '{self.video.sora_backend}' is not a known backend")

        try:
            self.api.credential_for(self.video.sora_backend)
        except ConfigurationError as e:
            issues.append(f"Selected Sora backend has no key: {e}")

        if not self.api.kie_api_key and not self.api.fal_api_key:
            issues.append("No image provider key configured (KIE_API_KEY or FAL_API_KEY)")

        return issues


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reload_config():
    """Reload configuration from environment."""
    global _config
    _config = Config.from_env()

"""
Canonical request/result vocabulary shared by every provider adapter.

All models are frozen: a config is built by the caller and never touched by
an adapter, and every status poll produces a fresh snapshot instead of
mutating the previous one.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


AspectRatio = Literal["16:9", "9:16"]
VideoQuality = Literal["standard", "pro"]


class CanonicalStatus(str, Enum):
    """The four lifecycle states every upstream vocabulary is mapped onto."""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (CanonicalStatus.COMPLETED, CanonicalStatus.ERROR)


class MediaCategory(str, Enum):
    """Generation domains. Also the category of a fallback event."""
    IMAGE = "image"
    VIDEO = "video"
    TEXT = "text"
    AUDIO = "audio"


class GenerationConfig(BaseModel):
    """Canonical generation settings."""
    model_config = ConfigDict(frozen=True)

    aspect_ratio: AspectRatio = "16:9"
    duration: str = "10"  # Seconds, as a numeric string
    hd: bool = False

    @field_validator("duration", mode="before")
    @classmethod
    def _duration_as_string(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class VideoModelConfig(BaseModel):
    """Settings exposed by the video model catalog (quality instead of hd)."""
    model_config = ConfigDict(frozen=True)

    aspect_ratio: AspectRatio = "16:9"
    duration: str = "10"
    quality: VideoQuality = "pro"

    def to_generation_config(self) -> GenerationConfig:
        return GenerationConfig(
            aspect_ratio=self.aspect_ratio,
            duration=self.duration,
            hd=self.quality == "pro",
        )


class GenerationRequest(BaseModel):
    """One request maps to exactly one submission attempt."""
    model_config = ConfigDict(frozen=True)

    prompt: str
    reference_image_url: Optional[str] = None
    config: Union[GenerationConfig, VideoModelConfig] = Field(default_factory=GenerationConfig)

    @property
    def prompt_preview(self) -> str:
        return self.prompt[:200] + ("..." if len(self.prompt) > 200 else "")


class TaskHandle(BaseModel):
    """Identifier plus minimal state returned by a submission."""
    model_config = ConfigDict(frozen=True)

    id: str
    provider: str
    status: CanonicalStatus = CanonicalStatus.QUEUED
    progress: int = Field(default=0, ge=0, le=100)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    estimated_time: Optional[int] = None  # Seconds, filled by the sora2 model
    raw: Optional[dict[str, Any]] = None


class GenerationResult(BaseModel):
    """Normalized outcome of a single status poll."""
    model_config = ConfigDict(frozen=True)

    task_id: str
    status: CanonicalStatus
    progress: int = Field(default=0, ge=0, le=100)
    video_url: Optional[str] = None  # Primary output; first image for image providers
    watermarked_video_url: Optional[str] = None
    output_urls: list[str] = Field(default_factory=list)
    duration: Optional[str] = None
    quality: str = "standard"
    is_compliant: bool = True
    violation_reason: Optional[str] = None
    raw: Optional[dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class VideoGenerationResult(GenerationResult):
    """Result of the sora2 model, with fields the backends do not provide."""

    video_duration: Optional[int] = None
    video_resolution: Optional[str] = None


class CallContext(BaseModel):
    """Caller-supplied context carried into instrumentation."""
    model_config = ConfigDict(frozen=True)

    node_id: Optional[str] = None
    node_type: Optional[str] = None
    provider: Optional[str] = None
    platform: Optional[str] = None
    log_type: Optional[str] = None  # "submission" or "polling"

    def with_updates(self, **updates: Any) -> "CallContext":
        return self.model_copy(update=updates)


ProgressCallback = Callable[[int], Optional[Awaitable[None]]]

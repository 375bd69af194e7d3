"""
Model catalog for fallback decisions.

Priority-ordered model lists per generation category. The fallback executor
walks a category's list from the failing model downwards. Users can
reorder a category; models they leave out keep their default order after
the ones they listed.
"""

import threading
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from ..types import MediaCategory


@dataclass(frozen=True)
class ModelInfo:
    """Catalog entry. Scores are 1-10, higher is better (cost: higher is cheaper)."""
    id: str
    name: str
    category: MediaCategory
    priority: int  # 1 = tried first
    quality: int
    speed: int
    cost: int
    description: str = ""
    tags: tuple[str, ...] = ()
    is_default: bool = False


_I, _V, _T, _A = MediaCategory.IMAGE, MediaCategory.VIDEO, MediaCategory.TEXT, MediaCategory.AUDIO

IMAGE_MODELS = (
    ModelInfo("gemini-2.0-flash-exp", "Gemini 2.0 Flash Experimental", _I, 1, 8, 10, 9,
              "Fast experimental model with aspect ratio support", ("experimental", "fast"), is_default=True),
    ModelInfo("gemini-2.5-flash", "Gemini 2.5 Flash", _I, 2, 8, 9, 8,
              "Stable Flash model with image output", ("stable", "fast", "multimodal")),
    ModelInfo("gemini-3-pro-preview", "Gemini 3 Pro Preview", _I, 3, 10, 7, 5,
              "Highest quality, strong multimodal understanding", ("pro", "high-quality")),
    ModelInfo("gemini-3-flash", "Gemini 3 Flash", _I, 4, 9, 9, 7,
              "Fast high-quality image generation", ("fast", "high-quality")),
)

VIDEO_MODELS = (
    ModelInfo("veo-3.1-generate-preview", "Veo 3.1", _V, 1, 10, 5, 3,
              "Professional high-quality video", ("professional", "high-quality"), is_default=True),
    ModelInfo("veo-3.1-fast-generate-preview", "Veo 3.1 Fast", _V, 2, 8, 9, 7,
              "Fast iteration, short clips", ("fast", "preview")),
    ModelInfo("veo-3.0-fast-generate", "Veo 3.0 Fast", _V, 3, 7, 8, 8,
              "Stable fast generation", ("stable", "fast")),
    ModelInfo("wan-2.1-t2v-14b", "Wan 2.1", _V, 4, 8, 6, 6,
              "Animation-style text to video", ("animation", "t2v")),
)

TEXT_MODELS = (
    ModelInfo("gemini-3-pro-preview", "Gemini 3 Pro Preview", _T, 1, 10, 7, 4,
              "Strongest reasoning for complex tasks", ("preview", "reasoning"), is_default=True),
    ModelInfo("gemini-3-flash", "Gemini 3 Flash", _T, 2, 8, 9, 7,
              "Fast responses for realtime use", ("fast", "realtime")),
    ModelInfo("gemini-2.5-flash", "Gemini 2.5 Flash", _T, 3, 7, 10, 9,
              "Fastest text model, high availability", ("fastest", "stable")),
    ModelInfo("gemini-2.5-flash-preview", "Gemini 2.5 Flash Preview", _T, 4, 6, 10, 10,
              "Preview build", ("preview", "experimental")),
)

AUDIO_MODELS = (
    ModelInfo("gemini-2.5-flash-preview-tts", "Gemini 2.5 Flash TTS", _A, 1, 8, 9, 8,
              "Text to speech", ("tts", "voice"), is_default=True),
    ModelInfo("gemini-2.5-flash-native-audio-dialog", "Gemini 2.5 Native Audio", _A, 2, 9, 7, 6,
              "Native audio for dialog and effects", ("native-audio", "dialog")),
)

DEFAULT_MODELS = IMAGE_MODELS + VIDEO_MODELS + TEXT_MODELS + AUDIO_MODELS

QUOTA_KEYWORDS = (
    "quota",
    "limit",
    "exceeded",
    "rate limit",
    "429",
    "insufficient",
    "billing",
    "credit",
)


def is_quota_error(error: Any) -> bool:
    """Whether an error (or its message) reads like quota or rate-limit exhaustion."""
    message = getattr(error, "message", None) or error or ""
    text = str(message).lower()
    return any(keyword in text for keyword in QUOTA_KEYWORDS)


class ModelCatalog:
    """Per-category model lists with optional user priority overrides."""

    def __init__(self, models: Iterable[ModelInfo] = DEFAULT_MODELS):
        self._models: list[ModelInfo] = list(models)
        self._user_priority: dict[MediaCategory, list[str]] = {}
        self._lock = threading.Lock()

    def models(self, category: Union[MediaCategory, str]) -> list[ModelInfo]:
        """Category models in effective priority order."""
        category = MediaCategory(category)
        ranked = sorted((m for m in self._models if m.category == category), key=lambda m: m.priority)

        with self._lock:
            override = list(self._user_priority.get(category, []))
        if not override:
            return ranked

        by_id = {m.id: m for m in ranked}
        ordered = [by_id[model_id] for model_id in override if model_id in by_id]
        ordered += [m for m in ranked if m.id not in override]
        return ordered

    def model_ids(self, category: Union[MediaCategory, str]) -> list[str]:
        return [m.id for m in self.models(category)]

    def get(self, model_id: str, category: Optional[Union[MediaCategory, str]] = None) -> Optional[ModelInfo]:
        """Look up a model. Ids shared across categories need `category`."""
        for model in self._models:
            if model.id == model_id and (category is None or model.category == MediaCategory(category)):
                return model
        return None

    def default_model(self, category: Union[MediaCategory, str]) -> Optional[str]:
        ranked = self.models(category)
        for model in ranked:
            if model.is_default:
                return model.id
        return ranked[0].id if ranked else None

    def next_fallback(
        self,
        model_id: str,
        category: Optional[Union[MediaCategory, str]] = None,
        excluded: Iterable[str] = (),
    ) -> Optional[str]:
        """
        The next model after `model_id` in its category that is not excluded.

        Returns None for unknown models or when the list is exhausted.
        """
        model = self.get(model_id, category)
        if model is None:
            return None

        ordered = self.model_ids(model.category)
        skip = set(excluded)
        for candidate in ordered[ordered.index(model_id) + 1:]:
            if candidate not in skip:
                return candidate
        return None

    def set_user_priority(self, category: Union[MediaCategory, str], model_ids: list[str]):
        with self._lock:
            self._user_priority[MediaCategory(category)] = list(model_ids)

    def user_priority(self, category: Union[MediaCategory, str]) -> list[str]:
        """The stored override for a category, empty when none is set."""
        with self._lock:
            return list(self._user_priority.get(MediaCategory(category), []))

    def clear_user_priority(self, category: Optional[Union[MediaCategory, str]] = None):
        with self._lock:
            if category is None:
                self._user_priority.clear()
            else:
                self._user_priority.pop(MediaCategory(category), None)


# Global catalog instance
_catalog: Optional[ModelCatalog] = None


def get_model_catalog() -> ModelCatalog:
    """Get the process-wide model catalog."""
    global _catalog
    if _catalog is None:
        _catalog = ModelCatalog()
    return _catalog

"""
Raw upstream response records.

One optional-field model per vendor response shape. Every field may be
absent, unknown keys are kept (extra="allow"), and values are typed loosely
because vendors are inconsistent about numbers vs strings. Adapters parse a
response into its record once and read named attributes from it instead of
probing dicts ad hoc.
"""

from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import DataExtractionError


class RawPayload(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)


P = TypeVar("P", bound=RawPayload)


def default_if_null(model: type[BaseModel], value: Any, info: ValidationInfo) -> Any:
    """Vendors send null for empty containers; substitute the field default."""
    if value is None:
        return model.model_fields[info.field_name].get_default(call_default_factory=True)
    return value


def parse_payload(model: type[P], data: Any, provider: str) -> P:
    """
    Validate a decoded response against its record.

    Raises:
        DataExtractionError: When the body is not an object or a nested
            field has the wrong container type
    """
    if not isinstance(data, dict):
        raise DataExtractionError(provider=provider, field_name="response object", raw=data)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise DataExtractionError(
            provider=provider,
            field_name=model.__name__,
            raw=data,
            tried=[".".join(str(p) for p in err["loc"]) for err in e.errors()],
        ) from e


class SutuPayload(RawPayload):
    id: Any = None
    task_id: Any = None
    status: Any = None
    progress: Any = None
    quality: Optional[str] = None
    error: Any = None
    message: Any = None


class YunwuDetail(RawPayload):
    status: Any = None
    progress_pct: Any = None
    failure_reason: Any = None
    generations: list[Any] = Field(default_factory=list)
    input: dict[str, Any] = Field(default_factory=dict)

    @field_validator("generations", "input", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        return default_if_null(cls, value, info)


class YunwuPayload(RawPayload):
    id: Any = None
    status: Any = None
    progress: Any = None
    error: Any = None
    seconds: Any = None
    detail: Optional[YunwuDetail] = None


class DayuapiPayload(RawPayload):
    id: Any = None
    status: Any = None
    progress: Any = None
    video_url: Optional[str] = None
    error: Any = None
    message: Any = None


class DayuapiContent(RawPayload):
    url: Optional[str] = None


class KieRecord(RawPayload):
    """The `data` object of a Kie jobs/recordInfo response."""
    taskId: Any = None
    state: Any = None
    status: Any = None
    progress: Any = None
    resultJson: Any = None
    failMsg: Any = None
    failCode: Any = None
    error: Any = None
    message: Any = None
    duration: Any = None
    n_frames: Any = None


class KieEnvelope(RawPayload):
    """Every Kie response: {code, msg, data}."""
    code: Any = None
    msg: Optional[str] = None
    data: Optional[KieRecord] = None

    @property
    def ok(self) -> bool:
        return str(self.code) == "200"


class KieGpt4oRecord(RawPayload):
    taskId: Any = None
    status: Any = None
    progress: Any = None
    successFlag: Any = None
    errorMessage: Any = None
    response: Optional[dict[str, Any]] = None


class KieGpt4oEnvelope(RawPayload):
    code: Any = None
    msg: Optional[str] = None
    data: Optional[KieGpt4oRecord] = None

    @property
    def ok(self) -> bool:
        return str(self.code) == "200"


class FalStatus(RawPayload):
    status: Any = None
    request_id: Any = None
    queue_position: Any = None
    error: Any = None


class FalImage(RawPayload):
    url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    content_type: Optional[str] = None


class FalResult(RawPayload):
    images: list[FalImage] = Field(default_factory=list)
    seed: Any = None
    has_nsfw_concepts: list[bool] = Field(default_factory=list)

    @field_validator("images", "has_nsfw_concepts", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        return default_if_null(cls, value, info)

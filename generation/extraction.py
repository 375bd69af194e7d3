"""
Ordered field extraction for loosely-typed upstream payloads.

Each vendor puts the same value (task id, video url, duration) in different
places. Adapters declare an ordered chain of dotted paths; the first path
that resolves to a non-empty value wins. Keeping the chain as data makes the
lookup order auditable and testable on its own.

Usage:
    TASK_ID = FieldChain("task id", ["id", "task_id", "data.id", "result.id"])

    task_id = TASK_ID.require(payload, provider="sutu")
    video_url = VIDEO_URL.first(payload)
"""

import json
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from .errors import DataExtractionError


_MISSING = object()


def resolve_path(payload: Any, path: str) -> Any:
    """
    Walk a dotted path through nested dicts and lists.

    Integer segments index into lists ("generations.0.url"). Returns the
    sentinel _MISSING when any segment is absent.
    """
    current = payload
    for segment in path.split("."):
        if isinstance(current, dict):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, (list, tuple)) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return _MISSING
            current = current[index]
        else:
            return _MISSING
    return current


def _is_present(value: Any) -> bool:
    if value is _MISSING or value is None:
        return False
    if isinstance(value, (str, list, dict)) and not value:
        return False
    return True


@dataclass(frozen=True)
class FieldChain:
    """A named, ordered list of candidate locations for one value."""

    name: str
    paths: tuple[str, ...]

    def __init__(self, name: str, paths: Iterable[str]):
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "paths", tuple(paths))

    def locate(self, payload: Any) -> tuple[Optional[str], Any]:
        """Return (path, value) for the first present location, or (None, None)."""
        for path in self.paths:
            value = resolve_path(payload, path)
            if _is_present(value):
                return path, value
        return None, None

    def first(self, payload: Any, default: Any = None) -> Any:
        path, value = self.locate(payload)
        return value if path is not None else default

    def first_str(self, payload: Any, default: Optional[str] = None) -> Optional[str]:
        """Like first(), but only scalar values count and are stringified
        (numeric ids, durations). Containers at a path are skipped."""
        for path in self.paths:
            value = resolve_path(payload, path)
            if _is_present(value) and not isinstance(value, (dict, list, tuple)):
                return str(value)
        return default

    def require(self, payload: Any, provider: str) -> str:
        """
        Return the first present value as a string.

        Raises:
            DataExtractionError: When no location in the chain is present
        """
        value = self.first_str(payload)
        if value is None:
            raise DataExtractionError(
                provider=provider,
                field_name=self.name.replace(" ", "_"),
                raw=payload,
                tried=list(self.paths),
            )
        return value


def parse_progress(value: Any) -> int:
    """
    Coerce an upstream progress value into an integer percentage.

    Accepts ints, floats, numeric strings ("45", "45%") and ratio strings
    ("0.45") as used by some vendors. Anything else counts as 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        text = value.strip().rstrip("%")
        try:
            number = float(text)
        except ValueError:
            return 0
        if "." in text and 0.0 <= number <= 1.0:
            number *= 100
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        return 0
    return max(0, min(100, int(round(number))))


def parse_json_field(value: Any) -> dict[str, Any]:
    """Decode a JSON-in-a-string field such as Kie's resultJson."""
    if isinstance(value, dict):
        return value
    if not isinstance(value, str) or not value.strip():
        return {}
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        return {}
    return decoded if isinstance(decoded, dict) else {}

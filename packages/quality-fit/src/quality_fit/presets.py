from __future__ import annotations

from dataclasses import dataclass
import re

from .errors import InvalidRange
from .types import SizeRange

# Size windows in KB, keyed by the label users pass on the command line.
SIZE_RANGE_PRESETS: dict[str, tuple[int, int]] = {
    "30-500": (30, 500),
    "100-1000": (100, 1000),
}

_RANGE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)\s*$")


@dataclass(frozen=True, slots=True)
class PhotoPreset:
    name: str
    width: int
    height: int
    fmt: str
    quality: float
    size_range: str
    maintain_aspect: bool
    exact_dimensions: bool
    description: str = ""


PHOTO_PRESETS: dict[str, PhotoPreset] = {
    "passport": PhotoPreset(
        name="passport",
        width=150,
        height=200,
        fmt="jpeg",
        # Starts high so the search has room to move down.
        quality=0.92,
        size_range="30-500",
        maintain_aspect=False,
        exact_dimensions=True,
        description="150x200px JPEG with a 30-500KB file size target",
    ),
}


def parse_size_range(text: str) -> SizeRange:
    """Resolve a preset label like ``"30-500"`` or a custom ``"min-max"`` KB window."""
    key = str(text).strip()
    if key in SIZE_RANGE_PRESETS:
        min_kb, max_kb = SIZE_RANGE_PRESETS[key]
        return SizeRange.from_kb(min_kb, max_kb)
    m = _RANGE_RE.match(key)
    if m is None:
        raise InvalidRange(f"size range must look like MIN-MAX in KB, got: {text!r}")
    return SizeRange.from_kb(float(m.group(1)), float(m.group(2)))


def get_photo_preset(name: str) -> PhotoPreset:
    try:
        return PHOTO_PRESETS[str(name)]
    except KeyError:
        raise ValueError(f"unknown preset: {name!r} (available: {sorted(PHOTO_PRESETS)})") from None

from __future__ import annotations

from dataclasses import dataclass, field
import json
import math
from pathlib import Path
from typing import Any

from .presets import get_photo_preset, parse_size_range
from .types import DEFAULT_QUALITY, MAX_QUALITY, MIN_QUALITY, SizeRange

SUPPORTED_FORMATS = ("jpeg", "webp", "png")

DEFAULT_LADDER: tuple[float, ...] = (0.95, 0.90, 0.85, 0.80, 0.75, 0.70, 0.65, 0.60, 0.55, 0.50)

_ALLOWED_TOP = {"preset", "output", "resize", "target", "search"}


@dataclass(slots=True)
class SearchConfig:
    min_quality: float = MIN_QUALITY
    max_quality: float = MAX_QUALITY
    max_attempts: int = 25
    min_bracket_width: float = 0.01
    overage_tolerance: float = 1.1
    ladder: tuple[float, ...] = DEFAULT_LADDER

    def validate(self) -> None:
        if self.min_quality < MIN_QUALITY or self.max_quality > MAX_QUALITY:
            raise ValueError(f"quality bounds must be within [{MIN_QUALITY}, {MAX_QUALITY}]")
        if self.min_quality >= self.max_quality:
            raise ValueError("min_quality must be < max_quality")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.min_bracket_width <= 0:
            raise ValueError("min_bracket_width must be > 0")
        if self.overage_tolerance < 1.0:
            raise ValueError("overage_tolerance must be >= 1")
        for q in self.ladder:
            if q < self.min_quality or q > self.max_quality:
                raise ValueError(f"ladder quality {q} outside [{self.min_quality}, {self.max_quality}]")
        if any(b >= a for a, b in zip(self.ladder, self.ladder[1:])):
            raise ValueError("ladder must be strictly descending")


@dataclass(slots=True)
class JobConfig:
    fmt: str = "jpeg"
    quality: float = DEFAULT_QUALITY
    width: int | None = None
    height: int | None = None
    maintain_aspect: bool = True
    size_range: SizeRange | None = None
    exact_dimensions: bool = False
    preset: str | None = None
    search: SearchConfig = field(default_factory=SearchConfig)

    def validate(self) -> None:
        if self.fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"format must be one of: {', '.join(SUPPORTED_FORMATS)}")
        if self.width is not None and self.width <= 0:
            raise ValueError("width must be > 0")
        if self.height is not None and self.height <= 0:
            raise ValueError("height must be > 0")
        if self.exact_dimensions and (self.width is None or self.height is None):
            raise ValueError("exact_dimensions requires both width and height")
        if self.preset is not None and self.exact_dimensions:
            preset = get_photo_preset(self.preset)
            if (self.width, self.height) != (preset.width, preset.height):
                raise ValueError(
                    f"preset {preset.name} requires exact dimensions of {preset.width}x{preset.height} pixels"
                )
        self.search.validate()


def _expect_dict(payload: Any, where: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"{where} must be an object")
    return payload


def _expect_keys(obj: dict[str, Any], allowed: set[str], where: str, required: set[str] | None = None) -> None:
    extra = sorted(set(obj) - allowed)
    if extra:
        raise ValueError(f"unknown keys in {where}: {extra}")
    req = required if required is not None else set()
    missing = sorted(req - set(obj))
    if missing:
        raise ValueError(f"missing required keys in {where}: {missing}")


def quality_from_percent(raw: Any) -> float:
    pct = float(raw)
    if not math.isfinite(pct) or pct < 1 or pct > 100:
        raise ValueError(f"quality percent must be in [1,100], got {raw}")
    return pct / 100.0


def apply_preset(job: JobConfig, name: str) -> JobConfig:
    preset = get_photo_preset(name)
    job.preset = preset.name
    job.fmt = preset.fmt
    job.quality = preset.quality
    job.width = preset.width
    job.height = preset.height
    job.maintain_aspect = preset.maintain_aspect
    job.exact_dimensions = preset.exact_dimensions
    job.size_range = parse_size_range(preset.size_range)
    return job


def _parse_target(target: dict[str, Any]) -> SizeRange | None:
    _expect_keys(target, {"range", "min_kb", "max_kb", "min_bytes", "max_bytes"}, "target")
    if "range" in target:
        if len(target) > 1:
            raise ValueError("target.range cannot be combined with explicit bounds")
        raw = target["range"]
        return None if raw is None else parse_size_range(str(raw))
    if "min_kb" in target or "max_kb" in target:
        _expect_keys(target, {"min_kb", "max_kb"}, "target", required={"min_kb", "max_kb"})
        return SizeRange.from_kb(float(target["min_kb"]), float(target["max_kb"]))
    if "min_bytes" in target or "max_bytes" in target:
        _expect_keys(target, {"min_bytes", "max_bytes"}, "target", required={"min_bytes", "max_bytes"})
        return SizeRange(min_bytes=int(target["min_bytes"]), max_bytes=int(target["max_bytes"]))
    return None


def _parse_search(search: dict[str, Any]) -> SearchConfig:
    _expect_keys(
        search,
        {"min_quality", "max_quality", "max_attempts", "min_bracket_width", "overage_tolerance", "ladder"},
        "search",
    )
    cfg = SearchConfig()
    if "min_quality" in search:
        cfg.min_quality = float(search["min_quality"])
    if "max_quality" in search:
        cfg.max_quality = float(search["max_quality"])
    if "max_attempts" in search:
        cfg.max_attempts = int(search["max_attempts"])
    if "min_bracket_width" in search:
        cfg.min_bracket_width = float(search["min_bracket_width"])
    if "overage_tolerance" in search:
        cfg.overage_tolerance = float(search["overage_tolerance"])
    if "ladder" in search:
        ladder = search["ladder"]
        if not isinstance(ladder, list) or not ladder:
            raise ValueError("search.ladder must be a non-empty list")
        cfg.ladder = tuple(float(v) for v in ladder)
    return cfg


def job_config_from_payload(payload: Any) -> JobConfig:
    payload = _expect_dict(payload, "config")
    _expect_keys(payload, _ALLOWED_TOP, "config")

    job = JobConfig()
    preset = payload.get("preset")
    if preset:
        apply_preset(job, str(preset))

    output = _expect_dict(payload.get("output", {}), "output")
    _expect_keys(output, {"format", "quality"}, "output")
    if "format" in output:
        fmt = str(output["format"]).strip().lower()
        job.fmt = "jpeg" if fmt == "jpg" else fmt
    if "quality" in output:
        job.quality = quality_from_percent(output["quality"])

    resize = _expect_dict(payload.get("resize", {}), "resize")
    _expect_keys(resize, {"width", "height", "maintain_aspect"}, "resize")
    if "width" in resize:
        job.width = None if resize["width"] is None else int(resize["width"])
    if "height" in resize:
        job.height = None if resize["height"] is None else int(resize["height"])
    if "maintain_aspect" in resize:
        job.maintain_aspect = bool(resize["maintain_aspect"])

    if "target" in payload:
        job.size_range = _parse_target(_expect_dict(payload["target"], "target"))

    if "search" in payload:
        job.search = _parse_search(_expect_dict(payload["search"], "search"))

    job.validate()
    return job


def load_job_config(path: Path | str) -> JobConfig:
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"config not found: {config_path}")
    payload = json.loads(config_path.read_text(encoding="utf-8"))
    return job_config_from_payload(payload)

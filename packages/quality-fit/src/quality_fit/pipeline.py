from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path

import numpy as np

from .config import JobConfig, SearchConfig
from .encoders import build_encoder
from .imaging import image_size, load_image, resize_exact, resolve_dimensions
from .reporting import advisory as advisory_text, size_status
from .search import search_quality
from .types import DEFAULT_QUALITY, SearchResult, SizeRange, clamp_quality

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FitOutcome:
    width: int
    height: int
    fmt: str
    quality: float
    encoded_bytes: bytes = field(repr=False)
    search: SearchResult | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.encoded_bytes)

    @property
    def success(self) -> bool:
        return self.search is None or self.search.success

    @property
    def status(self) -> str | None:
        if self.search is None:
            return None
        return size_status(self.size_bytes, self.search.size_range)

    @property
    def advisory(self) -> str | None:
        if self.search is None:
            return None
        return advisory_text(self.search)


def fit_image(
    image: np.ndarray,
    *,
    fmt: str = "jpeg",
    quality: float = DEFAULT_QUALITY,
    width: int | None = None,
    height: int | None = None,
    maintain_aspect: bool = True,
    size_range: SizeRange | None = None,
    search_config: SearchConfig | None = None,
) -> FitOutcome:
    src_w, src_h = image_size(image)
    out_w, out_h = resolve_dimensions(src_w, src_h, width=width, height=height, maintain_aspect=maintain_aspect)
    resized = resize_exact(image, out_w, out_h)
    encoder = build_encoder(resized, fmt)

    if size_range is None:
        q = clamp_quality(quality)
        data = encoder(q)
        logger.info("encoded %dx%d %s at quality %.2f: %d bytes", out_w, out_h, encoder.fmt, q, len(data))
        return FitOutcome(width=out_w, height=out_h, fmt=encoder.fmt, quality=q, encoded_bytes=data)

    if not encoder.uses_quality:
        logger.warning("%s output ignores quality; the size target can only be checked, not searched", encoder.fmt)

    result = search_quality(encoder, size_range=size_range, initial_quality=quality, config=search_config)
    return FitOutcome(
        width=out_w,
        height=out_h,
        fmt=encoder.fmt,
        quality=result.quality,
        encoded_bytes=result.encoded_bytes,
        search=result,
    )


def fit_image_file(path: Path | str, job: JobConfig) -> FitOutcome:
    job.validate()
    image = load_image(path)
    return fit_image(
        image,
        fmt=job.fmt,
        quality=job.quality,
        width=job.width,
        height=job.height,
        maintain_aspect=job.maintain_aspect,
        size_range=job.size_range,
        search_config=job.search,
    )

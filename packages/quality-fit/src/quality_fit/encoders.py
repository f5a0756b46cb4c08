from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from .errors import EncodingFailure
from .types import clamp_quality

FILE_SUFFIXES = {
    "jpeg": ".jpg",
    "webp": ".webp",
    "png": ".png",
}

# PNG is lossless; the quality knob does not apply.
PNG_COMPRESSION_LEVEL = 6


def normalize_format(fmt: str) -> str:
    name = str(fmt).strip().lower()
    if name == "jpg":
        name = "jpeg"
    if name not in FILE_SUFFIXES:
        raise ValueError(f"unsupported format: {fmt!r} (expected one of {sorted(FILE_SUFFIXES)})")
    return name


def quality_to_percent(quality: float) -> int:
    return int(min(max(int(round(clamp_quality(quality) * 100)), 1), 100))


def _prepare_pixels(image: np.ndarray, fmt: str) -> np.ndarray:
    if image.ndim == 3 and image.shape[2] == 4 and fmt == "jpeg":
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def encode_image(image: np.ndarray, fmt: str, quality: float) -> bytes:
    fmt = normalize_format(fmt)
    if image is None or image.size == 0:
        raise EncodingFailure("cannot encode an empty image", fmt=fmt, quality=quality)

    if fmt == "jpeg":
        params = [int(cv2.IMWRITE_JPEG_QUALITY), quality_to_percent(quality)]
    elif fmt == "webp":
        params = [int(cv2.IMWRITE_WEBP_QUALITY), quality_to_percent(quality)]
    else:
        params = [int(cv2.IMWRITE_PNG_COMPRESSION), PNG_COMPRESSION_LEVEL]

    try:
        ok, enc = cv2.imencode(FILE_SUFFIXES[fmt], _prepare_pixels(image, fmt), params)
    except cv2.error as exc:
        raise EncodingFailure(f"{fmt} encoder failed: {exc}", fmt=fmt, quality=quality) from exc
    if not ok:
        raise EncodingFailure(f"{fmt} encoder returned no data", fmt=fmt, quality=quality)
    return enc.tobytes()


@dataclass(slots=True)
class ImageEncoder:
    """Encoder adapter bound to one image and one output format."""

    image: np.ndarray
    fmt: str

    def __call__(self, quality: float) -> bytes:
        return encode_image(self.image, self.fmt, quality)

    @property
    def uses_quality(self) -> bool:
        return self.fmt != "png"


def build_encoder(image: np.ndarray, fmt: str) -> ImageEncoder:
    return ImageEncoder(image=image, fmt=normalize_format(fmt))

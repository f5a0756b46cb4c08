from __future__ import annotations

import math
from pathlib import Path

import cv2
import numpy as np

from .errors import ImageLoadError

MAX_INPUT_BYTES = 50 * 1024 * 1024


def _round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def decode_image(data: bytes) -> np.ndarray:
    buf = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ImageLoadError("failed to decode image data")
    if image.dtype == np.uint16:
        image = (image // 257).astype(np.uint8)
    elif image.dtype != np.uint8:
        raise ImageLoadError(f"unsupported pixel type: {image.dtype}")
    return image


def load_image(path: Path | str, *, max_bytes: int = MAX_INPUT_BYTES) -> np.ndarray:
    p = Path(path)
    if not p.exists() or not p.is_file():
        raise ImageLoadError(f"image not found: {p}")
    size = p.stat().st_size
    if size > int(max_bytes):
        raise ImageLoadError(f"image too large: {size} bytes (limit {int(max_bytes)} bytes)")
    try:
        return decode_image(p.read_bytes())
    except ImageLoadError as exc:
        raise ImageLoadError(f"{exc}: {p}") from exc


def image_size(image: np.ndarray) -> tuple[int, int]:
    h, w = image.shape[:2]
    return int(w), int(h)


def resolve_dimensions(
    src_width: int,
    src_height: int,
    *,
    width: int | None = None,
    height: int | None = None,
    maintain_aspect: bool = True,
) -> tuple[int, int]:
    """Resolve output pixel dimensions.

    Missing sides default to the source size. With ``maintain_aspect`` and a
    single side given, the other side follows the source aspect ratio.
    """
    if src_width <= 0 or src_height <= 0:
        raise ValueError(f"source dimensions must be > 0, got {src_width}x{src_height}")
    if width is not None and width <= 0:
        raise ValueError("width must be > 0")
    if height is not None and height <= 0:
        raise ValueError("height must be > 0")

    if width is None and height is None:
        return int(src_width), int(src_height)

    aspect = float(src_width) / float(src_height)
    if maintain_aspect:
        if width is not None and height is None:
            return int(width), max(1, _round_half_up(width / aspect))
        if height is not None and width is None:
            return max(1, _round_half_up(height * aspect)), int(height)
    return int(width if width is not None else src_width), int(height if height is not None else src_height)


def resize_exact(image: np.ndarray, width: int, height: int) -> np.ndarray:
    src_w, src_h = image_size(image)
    if (src_w, src_h) == (int(width), int(height)):
        return image
    shrinking = width * height < src_w * src_h
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_CUBIC
    out = cv2.resize(image, (int(width), int(height)), interpolation=interpolation)
    if image_size(out) != (int(width), int(height)):
        got_w, got_h = image_size(out)
        raise RuntimeError(f"failed to create exact dimensions: got {got_w}x{got_h} instead of {width}x{height}")
    return out

from __future__ import annotations

import cv2
import numpy as np
import pytest

from quality_fit.errors import ImageLoadError
from quality_fit.imaging import decode_image, image_size, load_image, resize_exact, resolve_dimensions


def test_resolve_dimensions_keeps_aspect_from_width() -> None:
    assert resolve_dimensions(400, 300, width=200) == (200, 150)
    assert resolve_dimensions(300, 400, width=150) == (150, 200)


def test_resolve_dimensions_keeps_aspect_from_height() -> None:
    assert resolve_dimensions(400, 300, height=75) == (100, 75)
    # 3 * 2.5 = 7.5 rounds half up
    assert resolve_dimensions(5, 2, height=3) == (8, 3)


def test_resolve_dimensions_without_aspect_uses_given_sides() -> None:
    assert resolve_dimensions(400, 300, width=150, height=200, maintain_aspect=False) == (150, 200)
    assert resolve_dimensions(400, 300, width=150, maintain_aspect=False) == (150, 300)
    assert resolve_dimensions(400, 300) == (400, 300)


def test_resolve_dimensions_rejects_non_positive() -> None:
    with pytest.raises(ValueError, match="width must be > 0"):
        resolve_dimensions(400, 300, width=0)


def test_resize_exact_hits_requested_shape() -> None:
    img = np.zeros((300, 400, 3), dtype=np.uint8)
    assert image_size(resize_exact(img, 150, 200)) == (150, 200)
    assert image_size(resize_exact(img, 800, 600)) == (800, 600)
    assert resize_exact(img, 400, 300) is img


def test_load_image_round_trips_png(tmp_path) -> None:
    img = np.full((20, 30, 3), 127, dtype=np.uint8)
    path = tmp_path / "in.png"
    assert cv2.imwrite(str(path), img)
    loaded = load_image(path)
    assert loaded.shape == (20, 30, 3)


def test_load_image_rejects_oversized_file(tmp_path) -> None:
    path = tmp_path / "big.png"
    assert cv2.imwrite(str(path), np.zeros((50, 50, 3), dtype=np.uint8))
    with pytest.raises(ImageLoadError, match="too large"):
        load_image(path, max_bytes=10)


def test_load_image_rejects_missing_and_garbage(tmp_path) -> None:
    with pytest.raises(ImageLoadError, match="not found"):
        load_image(tmp_path / "missing.png")
    junk = tmp_path / "junk.jpg"
    junk.write_bytes(b"not an image")
    with pytest.raises(ImageLoadError, match="failed to decode"):
        load_image(junk)


def test_decode_image_scales_16_bit() -> None:
    img = np.full((4, 4), 65535, dtype=np.uint16)
    ok, enc = cv2.imencode(".png", img)
    assert ok
    out = decode_image(enc.tobytes())
    assert out.dtype == np.uint8
    assert int(out.max()) == 255

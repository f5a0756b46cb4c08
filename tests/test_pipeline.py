from __future__ import annotations

import cv2
import numpy as np

from quality_fit.config import JobConfig, apply_preset
from quality_fit.encoders import encode_image
from quality_fit.pipeline import fit_image, fit_image_file
from quality_fit.types import SizeRange


def _photo(h: int = 300, w: int = 400) -> np.ndarray:
    rng = np.random.default_rng(11)
    base = rng.integers(0, 256, size=(h // 10 + 1, w // 10 + 1, 3), dtype=np.uint8)
    img = cv2.resize(base, (w, h), interpolation=cv2.INTER_CUBIC)
    noise = rng.integers(0, 40, size=(h, w, 3), dtype=np.uint8)
    return cv2.add(img, noise)


def test_direct_encode_when_no_range() -> None:
    out = fit_image(_photo(), fmt="jpeg", quality=1.4, width=200)

    assert out.search is None
    assert out.success is True
    assert out.status is None and out.advisory is None
    assert (out.width, out.height) == (200, 150)
    assert out.quality == 1.0
    decoded = cv2.imdecode(np.frombuffer(out.encoded_bytes, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert decoded.shape == (150, 200, 3)


def test_search_lands_in_range_between_two_qualities() -> None:
    img = _photo()
    small = len(encode_image(img, "jpeg", 0.6))
    large = len(encode_image(img, "jpeg", 0.8))
    window = SizeRange(small, large)

    out = fit_image(img, fmt="jpeg", quality=0.95, size_range=window)

    assert out.success is True
    assert out.search is not None
    assert out.size_bytes == out.search.actual_size
    assert out.status in {"within", "above"}
    assert 0.1 <= out.quality <= 1.0


def test_png_cannot_be_searched_and_reports_advisory() -> None:
    img = _photo(64, 64)
    size = len(encode_image(img, "png", 0.9))
    window = SizeRange(size + 1000, size + 2000)

    out = fit_image(img, fmt="png", quality=0.9, size_range=window)

    assert out.success is False
    assert out.status == "below"
    assert out.size_bytes == size
    assert "could not achieve target file size" in (out.advisory or "")


def test_fit_image_file_with_passport_preset(tmp_path) -> None:
    path = tmp_path / "portrait.png"
    assert cv2.imwrite(str(path), _photo(600, 450))
    job = apply_preset(JobConfig(), "passport")

    out = fit_image_file(path, job)

    assert (out.width, out.height) == (150, 200)
    assert out.fmt == "jpeg"
    assert out.search is not None
    assert out.search.size_range == SizeRange(30 * 1024, 500 * 1024)
    decoded = cv2.imdecode(np.frombuffer(out.encoded_bytes, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert decoded.shape == (200, 150, 3)

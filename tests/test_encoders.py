from __future__ import annotations

import cv2
import numpy as np
import pytest

from quality_fit.encoders import build_encoder, encode_image, quality_to_percent
from quality_fit.errors import EncodingFailure


def _noise(h: int = 96, w: int = 128, c: int = 3) -> np.ndarray:
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(h, w, c), dtype=np.uint8)


def test_quality_to_percent_rounds_and_clamps() -> None:
    assert quality_to_percent(0.92) == 92
    assert quality_to_percent(1.5) == 100
    assert quality_to_percent(0.0) == 10


def test_jpeg_size_grows_with_quality() -> None:
    img = _noise()
    low = encode_image(img, "jpeg", 0.2)
    high = encode_image(img, "jpeg", 0.95)
    assert len(low) < len(high)
    decoded = cv2.imdecode(np.frombuffer(high, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert decoded.shape == img.shape


def test_jpeg_encoder_flattens_alpha() -> None:
    img = _noise(c=4)
    data = encode_image(img, "jpg", 0.8)
    decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    assert decoded.shape == (96, 128, 3)


def test_png_ignores_quality() -> None:
    enc = build_encoder(_noise(), "png")
    assert enc.uses_quality is False
    assert enc(0.1) == enc(1.0)


def test_webp_encoder_produces_bytes() -> None:
    enc = build_encoder(_noise(), "WEBP")
    assert enc.fmt == "webp"
    assert enc.uses_quality is True
    assert len(enc(0.5)) > 0


def test_encoder_is_deterministic() -> None:
    enc = build_encoder(_noise(), "jpeg")
    assert enc(0.73) == enc(0.73)


def test_empty_image_raises_encoding_failure() -> None:
    with pytest.raises(EncodingFailure, match="empty image"):
        encode_image(np.zeros((0, 0, 3), dtype=np.uint8), "jpeg", 0.9)


def test_unsupported_format_is_rejected() -> None:
    with pytest.raises(ValueError, match="unsupported format"):
        build_encoder(_noise(), "gif")

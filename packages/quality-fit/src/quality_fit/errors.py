from __future__ import annotations


class InvalidRange(ValueError):
    """Raised when a size range is empty, inverted or non-positive."""


class EncodingFailure(RuntimeError):
    """Raised when an encoder cannot produce bytes for an image at a quality."""

    def __init__(self, message: str, *, fmt: str | None = None, quality: float | None = None) -> None:
        super().__init__(message)
        self.fmt = fmt
        self.quality = quality


class ImageLoadError(ValueError):
    pass

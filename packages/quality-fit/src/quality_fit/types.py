from __future__ import annotations

from dataclasses import dataclass, field
import math

from .errors import InvalidRange

MIN_QUALITY = 0.1
MAX_QUALITY = 1.0
DEFAULT_QUALITY = 0.9

KB = 1024


def clamp_quality(quality: float, low: float = MIN_QUALITY, high: float = MAX_QUALITY) -> float:
    q = float(quality)
    if not math.isfinite(q):
        raise ValueError(f"quality must be a finite number, got {quality}")
    return float(min(max(q, float(low)), float(high)))


@dataclass(frozen=True, slots=True)
class SizeRange:
    min_bytes: int
    max_bytes: int

    def __post_init__(self) -> None:
        if self.min_bytes <= 0 or self.max_bytes <= 0:
            raise InvalidRange(f"size range bounds must be > 0, got {self.min_bytes}-{self.max_bytes}")
        if self.min_bytes >= self.max_bytes:
            raise InvalidRange(f"size range min must be < max, got {self.min_bytes}-{self.max_bytes}")

    @classmethod
    def from_kb(cls, min_kb: float, max_kb: float) -> SizeRange:
        return cls(min_bytes=int(round(float(min_kb) * KB)), max_bytes=int(round(float(max_kb) * KB)))

    def contains(self, size: int) -> bool:
        return self.min_bytes <= int(size) <= self.max_bytes

    def distance_to_min(self, size: int) -> int:
        return abs(int(size) - self.min_bytes)


@dataclass(frozen=True, slots=True)
class Candidate:
    quality: float
    size_bytes: int


@dataclass(frozen=True, slots=True)
class SearchState:
    lo: float
    hi: float
    quality: float
    iterations: int = 0
    best: Candidate | None = None
    best_data: bytes | None = field(default=None, repr=False)
    history: tuple[Candidate, ...] = ()

    @property
    def bracket_width(self) -> float:
        return float(self.hi - self.lo)


@dataclass(frozen=True, slots=True)
class SearchResult:
    success: bool
    quality: float
    actual_size: int
    encoded_bytes: bytes = field(repr=False)
    size_range: SizeRange
    phase: str
    attempts: tuple[Candidate, ...] = ()

    @property
    def within_range(self) -> bool:
        return self.size_range.contains(self.actual_size)

    @property
    def probe_count(self) -> int:
        return len(self.attempts)

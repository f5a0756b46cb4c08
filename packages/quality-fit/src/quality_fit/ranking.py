from __future__ import annotations

from typing import Literal

from .types import Candidate, SizeRange

RankMode = Literal["distance", "ladder"]


def _better_out_of_range(new: Candidate, best: Candidate, size_range: SizeRange, mode: RankMode) -> bool:
    if mode == "distance":
        return size_range.distance_to_min(new.size_bytes) < size_range.distance_to_min(best.size_bytes)
    # Ladder scanning keeps the largest size that still fits under the ceiling.
    return new.size_bytes < size_range.max_bytes and new.size_bytes > best.size_bytes


def is_better(new: Candidate, best: Candidate | None, size_range: SizeRange, *, mode: RankMode = "distance") -> bool:
    """Return True when ``new`` should replace ``best`` as the best-so-far candidate.

    In-range candidates beat out-of-range ones. Two in-range candidates prefer the
    larger size. Two out-of-range candidates are compared by ``mode``: distance to
    ``min_bytes`` while bisecting, larger-but-under-``max_bytes`` while walking the
    ladder. Ties keep the earlier candidate.
    """
    if best is None:
        return True
    new_in = size_range.contains(new.size_bytes)
    best_in = size_range.contains(best.size_bytes)
    if new_in != best_in:
        return new_in
    if new_in:
        return new.size_bytes > best.size_bytes
    return _better_out_of_range(new, best, size_range, mode)


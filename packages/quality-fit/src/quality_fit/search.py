from __future__ import annotations

from dataclasses import replace
import logging
from typing import Callable

from .config import SearchConfig
from .errors import InvalidRange
from .ranking import is_better
from .types import Candidate, SearchResult, SearchState, SizeRange, clamp_quality

logger = logging.getLogger(__name__)

Encoder = Callable[[float], bytes]


def _probe(encode: Encoder, quality: float) -> tuple[Candidate, bytes]:
    data = encode(float(quality))
    return Candidate(quality=float(quality), size_bytes=len(data)), data


def _check_range(size_range: SizeRange) -> None:
    # SizeRange validates on construction; duck-typed ranges are re-checked here.
    if size_range.min_bytes <= 0 or size_range.max_bytes <= 0 or size_range.min_bytes >= size_range.max_bytes:
        raise InvalidRange(f"invalid size range: {size_range.min_bytes}-{size_range.max_bytes}")


def initial_state(q0: float, config: SearchConfig) -> SearchState:
    lo = float(config.min_quality)
    hi = float(config.max_quality)
    return SearchState(lo=lo, hi=hi, quality=clamp_quality(q0, lo, hi))


def _result(
    state: SearchState,
    candidate: Candidate,
    data: bytes,
    size_range: SizeRange,
    *,
    success: bool,
    phase: str,
) -> SearchResult:
    return SearchResult(
        success=success,
        quality=candidate.quality,
        actual_size=candidate.size_bytes,
        encoded_bytes=data,
        size_range=size_range,
        phase=phase,
        attempts=state.history,
    )


# Bisects quality toward the size window; the first in-range probe wins.
def run_binary_phase(
    encode: Encoder,
    state: SearchState,
    *,
    size_range: SizeRange,
    config: SearchConfig,
) -> tuple[SearchState, SearchResult | None]:
    while state.iterations < int(config.max_attempts):
        q = state.quality
        candidate, data = _probe(encode, q)
        state = replace(state, iterations=state.iterations + 1, history=state.history + (candidate,))
        logger.debug(
            "attempt %d: quality=%.4f size=%d target=%d-%d",
            state.iterations,
            q,
            candidate.size_bytes,
            size_range.min_bytes,
            size_range.max_bytes,
        )

        if size_range.contains(candidate.size_bytes):
            logger.info("found quality %.4f with size %d after %d attempts", q, candidate.size_bytes, state.iterations)
            state = replace(state, best=candidate, best_data=data)
            return state, _result(state, candidate, data, size_range, success=True, phase="binary")

        if is_better(candidate, state.best, size_range, mode="distance"):
            state = replace(state, best=candidate, best_data=data)

        if candidate.size_bytes > size_range.max_bytes:
            state = replace(state, hi=q, quality=(state.lo + q) / 2.0)
        else:
            state = replace(state, lo=q, quality=(q + state.hi) / 2.0)

        if state.bracket_width < float(config.min_bracket_width):
            logger.debug("bracket [%.4f, %.4f] collapsed, stopping bisection", state.lo, state.hi)
            break

    return state, None


# Accepts a near miss above the ceiling, else walks the fixed ladder, else reports the best found.
def run_fallback_phase(
    encode: Encoder,
    state: SearchState,
    *,
    size_range: SizeRange,
    config: SearchConfig,
) -> tuple[SearchState, SearchResult]:
    best = state.best
    tolerance_cap = size_range.max_bytes * float(config.overage_tolerance)
    if (
        best is not None
        and state.best_data is not None
        and best.size_bytes > 0
        and size_range.max_bytes < best.size_bytes <= tolerance_cap
    ):
        logger.info("accepting best attempt: quality=%.4f size=%d", best.quality, best.size_bytes)
        return state, _result(state, best, state.best_data, size_range, success=True, phase="tolerance")

    for q in config.ladder:
        candidate, data = _probe(encode, q)
        state = replace(state, history=state.history + (candidate,))
        logger.debug("ladder quality=%.2f size=%d", q, candidate.size_bytes)
        if size_range.contains(candidate.size_bytes):
            logger.info("found match on ladder with quality %.2f: %d bytes", q, candidate.size_bytes)
            state = replace(state, best=candidate, best_data=data)
            return state, _result(state, candidate, data, size_range, success=True, phase="ladder")
        if is_better(candidate, state.best, size_range, mode="ladder"):
            state = replace(state, best=candidate, best_data=data)

    if state.best is None:
        raise RuntimeError("fallback phase needs at least one probed candidate")
    final, data = _probe(encode, state.best.quality)
    state = replace(state, history=state.history + (final,))
    logger.warning(
        "could not achieve target %d-%d bytes; best: quality=%.4f size=%d",
        size_range.min_bytes,
        size_range.max_bytes,
        final.quality,
        final.size_bytes,
    )
    return state, _result(state, final, data, size_range, success=False, phase="fallback")


def search_quality(
    encode: Encoder,
    *,
    size_range: SizeRange,
    initial_quality: float,
    config: SearchConfig | None = None,
) -> SearchResult:
    """Search the encoder quality so the encoded size lands inside ``size_range``.

    ``encode`` maps a quality in ``[0.1, 1.0]`` to encoded bytes; it is called
    sequentially, at most ``max_attempts`` times while bisecting plus once per
    ladder level and once for the final re-encode. Encoder errors propagate
    unchanged. When the window cannot be met the result carries
    ``success=False`` and the closest candidate found.
    """
    cfg = config or SearchConfig()
    cfg.validate()
    _check_range(size_range)

    state = initial_state(initial_quality, cfg)
    if state.quality != float(initial_quality):
        logger.debug("initial quality %s clamped to %.4f", initial_quality, state.quality)

    state, result = run_binary_phase(encode, state, size_range=size_range, config=cfg)
    if result is not None:
        return result
    logger.info(
        "bisection ended after %d attempts without a hit; best so far quality=%.4f size=%d",
        state.iterations,
        state.best.quality if state.best else float("nan"),
        state.best.size_bytes if state.best else -1,
    )
    _, result = run_fallback_phase(encode, state, size_range=size_range, config=cfg)
    return result

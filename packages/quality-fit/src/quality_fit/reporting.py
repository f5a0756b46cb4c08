from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any, Literal

from .types import KB, SearchResult, SizeRange

SizeStatus = Literal["within", "below", "above"]


def format_kb(size_bytes: int) -> str:
    return f"{size_bytes / KB:.1f}KB"


def format_range_kb(size_range: SizeRange) -> str:
    return f"{format_kb(size_range.min_bytes)}-{format_kb(size_range.max_bytes)}"


def size_status(size_bytes: int, size_range: SizeRange) -> SizeStatus:
    if size_bytes < size_range.min_bytes:
        return "below"
    if size_bytes > size_range.max_bytes:
        return "above"
    return "within"


def status_message(size_bytes: int, size_range: SizeRange) -> str:
    status = size_status(size_bytes, size_range)
    if status == "within":
        return f"file size within target range ({format_range_kb(size_range)})"
    if status == "below":
        return f"file size below minimum ({format_kb(size_bytes)} < {format_kb(size_range.min_bytes)})"
    return f"file size above maximum ({format_kb(size_bytes)} > {format_kb(size_range.max_bytes)})"


def advisory(result: SearchResult) -> str | None:
    """Human-readable note for results that did not land strictly inside the range."""
    if result.within_range:
        return None
    target = format_range_kb(result.size_range)
    actual = format_kb(result.actual_size)
    if result.success:
        return f"accepted near miss: {actual} is within tolerance of the {target} target"
    return f"could not achieve target file size of {target}; actual size: {actual}"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def search_report(result: SearchResult) -> dict[str, Any]:
    return {
        "success": bool(result.success),
        "phase": result.phase,
        "quality": float(result.quality),
        "actual_size": int(result.actual_size),
        "size_range": asdict(result.size_range),
        "status": size_status(result.actual_size, result.size_range),
        "advisory": advisory(result),
        "attempts": [asdict(c) for c in result.attempts],
    }


def atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    tmp.replace(path)


def stamp(payload: dict[str, Any]) -> dict[str, Any]:
    return {"timestamp_utc": _utc_now_iso(), **payload}

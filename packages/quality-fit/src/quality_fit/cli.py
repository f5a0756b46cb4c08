from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .config import JobConfig, apply_preset, load_job_config, quality_from_percent
from .encoders import FILE_SUFFIXES, normalize_format
from .pipeline import fit_image_file
from .presets import PHOTO_PRESETS, SIZE_RANGE_PRESETS, parse_size_range
from .reporting import atomic_write_json, format_kb, search_report, stamp, status_message
from .types import SizeRange

EXIT_RANGE_NOT_ACHIEVED = 2


def _default_output(input_path: Path, fmt: str) -> Path:
    return input_path.with_name(f"{input_path.stem}-resized{FILE_SUFFIXES[fmt]}")


def _build_job(args: argparse.Namespace) -> JobConfig:
    if args.max_kb is not None and (args.size_range or args.no_size_range):
        raise ValueError("--max-kb only combines with --min-kb, not --size-range or --no-size-range")

    job = load_job_config(args.config) if args.config is not None else JobConfig()
    if args.preset:
        apply_preset(job, args.preset)

    if args.format:
        job.fmt = normalize_format(args.format)
    if args.quality is not None:
        job.quality = quality_from_percent(args.quality)
    if args.width is not None:
        job.width = int(args.width)
    if args.height is not None:
        job.height = int(args.height)
    if args.keep_aspect is not None:
        job.maintain_aspect = bool(args.keep_aspect)

    if args.size_range:
        job.size_range = parse_size_range(args.size_range)
    elif args.min_kb is not None or args.max_kb is not None:
        if args.min_kb is None or args.max_kb is None:
            raise ValueError("--min-kb and --max-kb must be given together")
        job.size_range = SizeRange.from_kb(args.min_kb, args.max_kb)
    elif args.no_size_range:
        job.size_range = None

    job.validate()
    return job


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resize an image and search the encoder quality so the file lands in a target size range"
    )
    parser.add_argument("input", type=Path, help="source image")
    parser.add_argument("-o", "--output", type=Path, default=None, help="output file (default: <input>-resized.<ext>)")
    parser.add_argument("--config", type=Path, default=None, help="JSON job config")
    parser.add_argument(
        "--preset",
        choices=sorted(PHOTO_PRESETS),
        default=None,
        help="; ".join(f"{p.name}: {p.description}" for p in PHOTO_PRESETS.values()),
    )
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    aspect = parser.add_mutually_exclusive_group()
    aspect.add_argument("--keep-aspect", dest="keep_aspect", action="store_true", default=None)
    aspect.add_argument("--no-keep-aspect", dest="keep_aspect", action="store_false", default=None)
    parser.add_argument("--format", choices=["jpeg", "jpg", "webp", "png"], default=None)
    parser.add_argument("--quality", type=float, default=None, help="initial quality percent (1-100)")
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--size-range",
        default=None,
        help=f"target size window in KB: one of {sorted(SIZE_RANGE_PRESETS)} or MIN-MAX",
    )
    target.add_argument("--min-kb", type=float, default=None)
    target.add_argument("--no-size-range", action="store_true", help="single encode at the given quality")
    parser.add_argument("--max-kb", type=float, default=None)
    parser.add_argument("--report", type=Path, default=None, help="write a JSON report of the search")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    job = _build_job(args)
    input_path = args.input.resolve()
    output_path = (args.output or _default_output(input_path, job.fmt)).resolve()

    outcome = fit_image_file(input_path, job)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(outcome.encoded_bytes)

    print(f"status: {'ok' if outcome.success else 'range_not_achieved'}")
    print(f"output: {output_path}")
    print(f"dimensions: {outcome.width}x{outcome.height}")
    print(f"format: {outcome.fmt}")
    print(f"quality: {round(outcome.quality * 100)}%")
    print(f"size: {format_kb(outcome.size_bytes)} ({outcome.size_bytes} bytes)")
    if outcome.search is not None:
        print(f"target: {status_message(outcome.size_bytes, outcome.search.size_range)}")
        print(f"attempts: {outcome.search.probe_count}")
        if outcome.advisory:
            print(f"advisory: {outcome.advisory}")

    if args.report is not None:
        payload = {
            "input": str(input_path),
            "output": str(output_path),
            "preset": job.preset,
            "width": outcome.width,
            "height": outcome.height,
            "format": outcome.fmt,
            "quality": outcome.quality,
            "size_bytes": outcome.size_bytes,
            "search": search_report(outcome.search) if outcome.search is not None else None,
        }
        atomic_write_json(args.report.resolve(), stamp(payload))
        print(f"report: {args.report.resolve()}")

    return 0 if outcome.success else EXIT_RANGE_NOT_ACHIEVED


if __name__ == "__main__":
    raise SystemExit(main())

"""Fit encoded images into a target file size range by searching encoder quality."""

from .config import JobConfig, SearchConfig, load_job_config
from .encoders import ImageEncoder, build_encoder
from .errors import EncodingFailure, ImageLoadError, InvalidRange
from .pipeline import FitOutcome, fit_image, fit_image_file
from .search import search_quality
from .types import Candidate, SearchResult, SizeRange

__all__ = [
    "Candidate",
    "EncodingFailure",
    "FitOutcome",
    "ImageEncoder",
    "ImageLoadError",
    "InvalidRange",
    "JobConfig",
    "SearchConfig",
    "SearchResult",
    "SizeRange",
    "build_encoder",
    "fit_image",
    "fit_image_file",
    "load_job_config",
    "search_quality",
]

"""Video conversion functionality for mp4batch.

This package provides two levels of functionality:
- core: Low-level ffmpeg utilities (engine probe, duration probe, command building)
- batch: Batch orchestration (file discovery, single file conversion, summaries)
"""

from .core import (
    ConversionConfig,
    probe_engine,
    ffprobe_duration,
    build_ffmpeg_cmd,
    parse_progress,
    error_message,
    transcode_video,
)
from .batch import (
    ConversionJob,
    ConversionResult,
    BatchSummary,
    make_job,
    iter_video_files,
    convert_one,
    convert_all,
    effective_workers,
)

__all__ = [
    # Configuration
    "ConversionConfig",
    # Engine
    "probe_engine",
    "ffprobe_duration",
    "build_ffmpeg_cmd",
    "parse_progress",
    "error_message",
    "transcode_video",
    # Batch
    "ConversionJob",
    "ConversionResult",
    "BatchSummary",
    "make_job",
    "iter_video_files",
    "convert_one",
    "convert_all",
    "effective_workers",
]

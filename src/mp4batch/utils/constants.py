"""
Constants and configuration defaults for batch MP4 conversion.

This module holds the default folders, the accepted source extensions, the
fixed ffmpeg encoding parameters and the status codes used in results. Values
that make sense to change per machine can be overridden through environment
variables, optionally read from a .env file in the working directory.
"""

import os

from dotenv import load_dotenv

from . import logger
from .logger import LogLevel

load_dotenv()


def _int_env(name: str, default: int) -> int:
    """Read an integer setting from the environment, falling back to `default`."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.log("config.invalid", LogLevel.WARN, name=name, value=raw, using=default)
        return default


# Folder name constants (relative to the working directory)
INPUT_FOLDER = os.getenv("MP4BATCH_INPUT_DIR", "./input")
OUTPUT_FOLDER = os.getenv("MP4BATCH_OUTPUT_DIR", "./output")

# External binaries
FFMPEG_BIN = os.getenv("MP4BATCH_FFMPEG", "ffmpeg")
FFPROBE_BIN = os.getenv("MP4BATCH_FFPROBE", "ffprobe")
FFMPEG_DOWNLOAD_URL = "https://ffmpeg.org/download.html"

# Concurrent conversions (1 = one file at a time)
WORKERS = _int_env("MP4BATCH_WORKERS", 1)

# Accepted source file extensions (compared lower-cased)
VIDEO_EXTENSIONS = frozenset({".webm", ".mkv", ".avi", ".mov", ".flv"})
OUTPUT_SUFFIX = ".mp4"

# Encoding parameters
VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"
PRESET = "medium"
CRF = 23
MOVFLAGS = "+faststart"

# Processing status codes
STATUS_OK = "OK"
STATUS_FAIL = "FAIL"

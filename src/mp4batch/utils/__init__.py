"""
Constants, logging and small system/file helpers for mp4batch.

This package collects the default folders, extensions and encoding settings,
a structured logger that plays well with tqdm progress bars, and helpers for
running external commands and preparing the working folders.
"""

from .constants import (
    AUDIO_CODEC,
    CRF,
    FFMPEG_BIN,
    FFMPEG_DOWNLOAD_URL,
    FFPROBE_BIN,
    INPUT_FOLDER,
    MOVFLAGS,
    OUTPUT_FOLDER,
    OUTPUT_SUFFIX,
    PRESET,
    STATUS_FAIL,
    STATUS_OK,
    VIDEO_CODEC,
    VIDEO_EXTENSIONS,
    WORKERS,
)
from .logger import LogLevel

__all__ = [
    "INPUT_FOLDER",
    "OUTPUT_FOLDER",
    "FFMPEG_BIN",
    "FFPROBE_BIN",
    "FFMPEG_DOWNLOAD_URL",
    "WORKERS",
    "VIDEO_EXTENSIONS",
    "OUTPUT_SUFFIX",
    "VIDEO_CODEC",
    "AUDIO_CODEC",
    "PRESET",
    "CRF",
    "MOVFLAGS",
    "STATUS_OK",
    "STATUS_FAIL",
    "LogLevel",
]

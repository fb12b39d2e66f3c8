"""
Batch conversion of video files to MP4 (H.264/AAC) using ffmpeg.

This package scans an input folder for video files in containers that do not
play everywhere (WebM, Matroska, AVI, QuickTime, Flash video) and converts each
of them into a fast-start MP4 in an output folder. All encoding work is done
by the ffmpeg binary; the package only builds the command lines, watches
progress and reports which files succeeded and which failed.

The package is organized into:
- convert: ffmpeg glue (probing, command building) and batch orchestration.
- utils: constants, structured logging, and small system/file helpers.
- converter: the BatchConverter front end and the command line entry point.
"""

__version__ = "1.0.0"

# Debug flag for controlling verbose output
DEBUG: bool = False

__all__ = ["__version__", "DEBUG"]

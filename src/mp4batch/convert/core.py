"""
ffmpeg glue: probing the engine, building command lines and running transcodes.

This module checks that ffmpeg can be started, reads a source file's duration
with ffprobe, builds the fixed H.264/AAC fast-start command line and runs it,
turning ffmpeg's `-stats` output into percentage progress notifications.
"""
import json
import re
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, List, Tuple

from mp4batch.utils import (
    AUDIO_CODEC,
    CRF,
    FFMPEG_BIN,
    FFPROBE_BIN,
    INPUT_FOLDER,
    MOVFLAGS,
    OUTPUT_FOLDER,
    OUTPUT_SUFFIX,
    PRESET,
    VIDEO_CODEC,
    VIDEO_EXTENSIONS,
    WORKERS,
    LogLevel,
)
from mp4batch.utils import logger, system_util, time_util

ProgressCallback = Callable[[float], None]

_TIME_RE = re.compile(r"time=(\S+)")
_SPEED_RE = re.compile(r"speed=\s*(\S+)")


@dataclass(frozen=True)
class ConversionConfig:
    """Everything a batch run needs to know, fixed for the whole run."""
    input_dir: Path = Path(INPUT_FOLDER)
    output_dir: Path = Path(OUTPUT_FOLDER)
    extensions: frozenset = VIDEO_EXTENSIONS
    output_suffix: str = OUTPUT_SUFFIX
    video_codec: str = VIDEO_CODEC
    audio_codec: str = AUDIO_CODEC
    preset: str = PRESET
    crf: int = CRF
    movflags: str = MOVFLAGS
    workers: int = WORKERS
    ffmpeg: str = FFMPEG_BIN
    ffprobe: str = FFPROBE_BIN


def probe_engine(ffmpeg: str = FFMPEG_BIN) -> Tuple[bool, str]:
    """
    Ask ffmpeg for its codec list to find out whether it can be used at all.

    Returns (available, detail) where detail is the resolved binary on success
    or the reason it could not be used.
    """
    try:
        code, _, err = system_util.run_cmd([ffmpeg, "-hide_banner", "-codecs"])
    except OSError as e:
        return False, str(e)
    if code != 0:
        return False, _last_line(err) or f"{ffmpeg} exited with code {code}"
    return True, system_util.which(ffmpeg) or ffmpeg


def ffprobe_duration(path: Path, ffprobe: str = FFPROBE_BIN) -> Optional[float]:
    """Return the container duration of `path` in seconds, or None if unknown."""
    cmd = [
        ffprobe, "-v", "error",
        "-show_entries", "format=duration",
        "-of", "json",
        str(path)
    ]
    try:
        code, out, _ = system_util.run_cmd(cmd)
    except OSError:
        return None
    if code != 0:
        return None
    try:
        return float(json.loads(out)["format"]["duration"])
    except (ValueError, KeyError, TypeError):
        return None


def build_ffmpeg_cmd(src: Path, dst: Path, config: ConversionConfig = ConversionConfig()) -> List[str]:
    """Build the ffmpeg command converting `src` into an H.264/AAC MP4 at `dst`."""
    return [
        config.ffmpeg,
        "-hide_banner",
        "-nostdin",
        "-y",
        "-loglevel", "error",
        "-stats",
        "-i", str(src),
        "-c:v", config.video_codec,
        "-c:a", config.audio_codec,
        "-preset", config.preset,
        "-crf", str(config.crf),
        "-movflags", config.movflags,
        str(dst),
    ]


def parse_progress(line: str, duration: Optional[float]) -> Optional[Tuple[float, Optional[float]]]:
    """
    Parse an ffmpeg stats line into (percent, speed).

    Example line:
    frame= 1234 fps=18 q=-0.0 size=  10240KiB time=00:01:23.45 bitrate=1234.5kbits/s speed=0.75x
    """
    if not duration:
        return None
    time_match = _TIME_RE.search(line)
    if not time_match:
        return None
    elapsed = time_util.parse_timestamp(time_match.group(1))
    if elapsed is None:
        return None

    speed = None
    speed_match = _SPEED_RE.search(line)
    if speed_match:
        try:
            speed = float(speed_match.group(1).rstrip("x"))
        except ValueError:
            pass

    percent = min(elapsed / duration * 100, 100.0)
    return percent, speed


def error_message(code: int, stderr_text: str) -> str:
    """Pick the most useful line of ffmpeg's stderr to explain a failure."""
    for line in reversed(stderr_text.splitlines()):
        line = line.strip()
        if line and not (line.startswith("frame=") or line.startswith("size=")):
            return line
    return f"ffmpeg exited with code {code}"


def _last_line(text: str) -> str:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else ""


def transcode_video(src: Path, dst: Path, config: ConversionConfig = ConversionConfig(),
                    on_progress: Optional[ProgressCallback] = None,
                    debug: bool = False) -> Tuple[int, str, str]:
    """
    Convert a video file to MP4 with logging and progress updates.

    Blocks until ffmpeg exits. There is no timeout: a hung ffmpeg hangs the
    caller.

    Args:
        src: Source video file path
        dst: Destination .mp4 path (overwritten if present)
        config: Encoding parameters and binaries
        on_progress: Called with a percentage whenever ffmpeg reports progress
        debug: Include the head of ffmpeg's stderr in failure logs

    Returns:
        Tuple of (exit_code, stdout, stderr)

    Raises:
        OSError: ffmpeg could not be started.
    """
    cmd = build_ffmpeg_cmd(src, dst, config)
    duration = ffprobe_duration(src, config.ffprobe)

    logger.log("convert.start", LogLevel.INFO,
               file=src.name,
               dst=dst.name)
    logger.log("convert.command", LogLevel.INFO,
               cmd=subprocess.list2cmdline(cmd))
    logger.log("convert.details", LogLevel.DEBUG,
               file=src.name,
               duration=duration,
               video=config.video_codec,
               audio=config.audio_codec,
               preset=config.preset,
               crf=config.crf)

    process = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace"
    )

    stderr_output = []
    last_logged_pct = None
    started = time.time()

    # text mode turns ffmpeg's carriage-return stats updates into lines
    while True:
        line = process.stderr.readline()
        if not line:
            # EOF; communicate() below waits for the exit code
            break

        stderr_output.append(line)
        progress = parse_progress(line, duration)
        if progress is None:
            continue

        percent, speed = progress
        if on_progress:
            on_progress(percent)

        whole_pct = int(percent)
        if whole_pct != last_logged_pct:
            last_logged_pct = whole_pct
            fields = {"file": src.name, "pct": whole_pct}
            if speed:
                elapsed_media = duration * percent / 100
                fields["eta"] = time_util.get_eta_single_file(duration, speed, elapsed_media)
                fields["speed"] = f"{speed}x"
            logger.log("convert.progress", LogLevel.INFO, **fields)

    stdout, remaining_stderr = process.communicate()
    stderr_output.append(remaining_stderr or "")

    stderr_text = ''.join(stderr_output)
    code = process.returncode

    if code != 0:
        logger.log("convert.failed", LogLevel.ERROR,
                   file=src.name,
                   exit_code=code,
                   error=stderr_text[:200] if debug else error_message(code, stderr_text))
    else:
        logger.log("convert.complete", LogLevel.INFO,
                   file=src.name,
                   dst=dst.name,
                   took=time_util.format_duration(time.time() - started))

    return code, stdout or "", stderr_text

"""
Structured, thread-safe console logging for conversion runs.

Every entry is a single line with a UTC timestamp, a log level, a dotted event
name and key=value pairs, e.g.:

    2024-05-01 10:00:00 | [INFO] | convert.start | file="clip.webm" | dst="clip.mp4" | worker="main"

Event families used across the package:
    engine.*     ffmpeg availability probe (available, unavailable)
    workspace.*  input/output folder creation (ready, error)
    scan.*       input folder listing (error)
    convert.*    one file: start, command, details, progress, complete, failed
    batch.*      whole run: start, progress, end
    config.*     environment settings that could not be used (invalid)

Lines are written through tqdm so they appear above the batch progress bar
instead of tearing it. When several conversions run in a thread pool, each
entry carries the worker id (main, w1, w2, ...) of the thread that wrote it.
"""
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any

from tqdm import tqdm

_print_lock = threading.Lock()
_worker_id_map = {}
_worker_counter = 0
_worker_lock = threading.Lock()
_separator = " | "


class LogLevel(Enum):
    """Log level enumeration."""
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4


_current_level = LogLevel.INFO


def set_log_level(level: LogLevel) -> None:
    """Set the current log level."""
    global _current_level
    _current_level = level


def get_log_level() -> LogLevel:
    """Get the current log level."""
    return _current_level


def _format_kv(data: Dict[str, Any]) -> str:
    """Render fields as key="value" pairs; strings are quoted, None is null, bools are lower-case."""
    parts = []
    for key, value in data.items():
        if isinstance(value, str):
            # Keep entries on one line.
            escaped = value.replace("\r", "\\r").replace("\n", "\\n")
            escaped = escaped.replace('"', '\\"')
            parts.append(f'{key}="{escaped}"')
        elif value is None:
            parts.append(f'{key}=null')
        elif isinstance(value, bool):
            parts.append(f'{key}={str(value).lower()}')
        else:
            parts.append(f'{key}={value}')
    return _separator.join(parts)


def _write_line(text: str) -> None:
    tqdm.write(text)


def _should_log(level: LogLevel) -> bool:
    """Check if a message at the given level should be logged."""
    return level.value >= _current_level.value


def log(event: str, level: LogLevel = LogLevel.INFO, **kwargs) -> None:
    """
    Structured logging function.

    Args:
        event: Event name (e.g., 'convert.start', 'batch.end')
        level: Log level (TRACE, DEBUG, INFO, WARN, ERROR)
        **kwargs: Key-value pairs to log
    """
    if not _should_log(level):
        return

    if "worker" not in kwargs:
        kwargs["worker"] = get_worker_id()

    with _print_lock:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        kv_str = _format_kv(kwargs) if kwargs else ""
        header = f"{timestamp}{_separator}[{level.name}]{_separator}{event}"

        if kv_str:
            _write_line(f"{header}{_separator}{kv_str}")
        else:
            _write_line(header)


def safe_print(*args, **kwargs) -> None:
    """
    Thread-safe print for human-readable banner and summary lines.
    Use log() for events.
    """
    sep = kwargs.get("sep", " ")
    with _print_lock:
        tqdm.write(sep.join(str(a) for a in args), file=kwargs.get("file"), end=kwargs.get("end", "\n"))


def get_worker_id() -> str:
    """Return "main" for the main thread, otherwise a stable "wN" id per pool thread."""
    global _worker_counter
    thread = threading.current_thread()

    if thread is threading.main_thread():
        return "main"

    if thread.ident in _worker_id_map:
        return _worker_id_map[thread.ident]

    with _worker_lock:
        _worker_counter += 1
        worker_id = f"w{_worker_counter}"
        _worker_id_map[thread.ident] = worker_id
        return worker_id

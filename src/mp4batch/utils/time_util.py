from datetime import datetime, timedelta, timezone


def get_eta_single_file(video_duration, speed_val, elapsed_seconds):
    remaining_seconds = max(video_duration - elapsed_seconds, 0) / speed_val
    return _get_eta_string(remaining_seconds)


def get_eta_total(done_count, total_count, elapsed_seconds):
    avg_time_per_file = elapsed_seconds / done_count
    remaining_files = total_count - done_count
    remaining_seconds = avg_time_per_file * remaining_files
    return _get_eta_string(remaining_seconds)


def format_duration(time_in_seconds):
    hours = int(time_in_seconds // 3600)
    mins = int((time_in_seconds % 3600) // 60)
    secs = int(time_in_seconds % 60)
    if hours > 0:
        return f"{hours}h{mins}m{secs}s"
    if mins > 0:
        return f"{mins}m{secs}s"
    return f"{secs}s"


def parse_timestamp(value):
    """Convert an ffmpeg HH:MM:SS.ss timestamp to seconds, or None."""
    parts = value.split(":")
    if len(parts) != 3:
        return None
    try:
        return float(parts[0]) * 3600 + float(parts[1]) * 60 + float(parts[2])
    except ValueError:
        return None


def _get_eta_string(time_in_seconds):
    completion_time = (datetime.now(timezone.utc) + timedelta(
        seconds=time_in_seconds)).strftime("%Y-%m-%d %H:%M:%S")
    return f"{completion_time} ({format_duration(time_in_seconds)})"

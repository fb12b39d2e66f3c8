"""
Batch conversion: discovering source files, converting them one by one and
collecting the outcome of each.

Every discovered file yields exactly one ConversionResult, either OK with the
path of the new MP4 or FAIL with the error ffmpeg reported. A failure never
stops the remaining files from being converted.
"""
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from tqdm import tqdm

from mp4batch.utils import STATUS_FAIL, STATUS_OK, LogLevel
from mp4batch.utils import file_util, logger, time_util
from . import core

JobProgressCallback = Callable[["ConversionJob", float], None]


@dataclass(frozen=True)
class ConversionJob:
    """One source file and the MP4 it will be converted into."""
    source: Path
    target: Path


@dataclass
class ConversionResult:
    source: Path
    target: Optional[Path]
    status: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


@dataclass
class BatchSummary:
    """Outcomes of one batch run, in input order."""
    successes: List[ConversionResult] = field(default_factory=list)
    failures: List[ConversionResult] = field(default_factory=list)

    def add(self, result: ConversionResult) -> None:
        if result.ok:
            self.successes.append(result)
        else:
            self.failures.append(result)

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


def make_job(source: Path, config: core.ConversionConfig) -> ConversionJob:
    """Pair `source` with `<output_dir>/<stem><output_suffix>`."""
    target = file_util.output_path_for(source, config.output_dir, config.output_suffix)
    return ConversionJob(source=Path(source), target=target)


def iter_video_files(config: core.ConversionConfig) -> List[Path]:
    """
    List convertible files directly inside the input folder, sorted by name.

    A folder that cannot be read is logged and treated as empty.
    """
    try:
        return file_util.list_files_with_suffix(config.input_dir, config.extensions)
    except OSError as e:
        logger.log("scan.error", LogLevel.ERROR,
                   path=str(config.input_dir),
                   error=str(e))
        return []


def convert_one(source: Path, config: core.ConversionConfig,
                on_progress: Optional[JobProgressCallback] = None,
                debug: bool = False) -> ConversionResult:
    """Convert a single video file and report its outcome."""
    job = make_job(source, config)

    def _forward(percent: float) -> None:
        if on_progress:
            on_progress(job, percent)

    try:
        code, _, err = core.transcode_video(job.source, job.target, config,
                                            on_progress=_forward, debug=debug)
    except OSError as e:
        logger.log("convert.failed", LogLevel.ERROR,
                   file=job.source.name,
                   error=str(e))
        return ConversionResult(job.source, None, STATUS_FAIL, str(e))

    if code != 0:
        return ConversionResult(job.source, None, STATUS_FAIL, core.error_message(code, err))

    return ConversionResult(job.source, job.target, STATUS_OK)


def effective_workers(requested: int) -> int:
    """Clamp the requested worker count to [1, cpu_count]."""
    return max(1, min(requested, os.cpu_count() or 1))


def convert_all(files: List[Path], config: core.ConversionConfig,
                on_progress: Optional[JobProgressCallback] = None,
                debug: bool = False) -> BatchSummary:
    """
    Convert `files` and collect their outcomes.

    With a single worker, each conversion finishes before the next starts.
    With more, a bounded thread pool runs them; the summary still lists
    results in the order of `files`.
    """
    summary = BatchSummary()
    if not files:
        return summary

    workers = effective_workers(config.workers)
    start_time = time.time()
    done = 0

    def _record(result: ConversionResult) -> None:
        nonlocal done
        done += 1
        if result.ok:
            logger.safe_print(f"✅ {result.source.name} -> {result.target}")
        else:
            logger.safe_print(f"❌ {result.source.name}: {result.error}")
        logger.log("batch.progress", LogLevel.INFO,
                   completed=done,
                   total=len(files),
                   pct=round(done / len(files) * 100, 1),
                   eta=time_util.get_eta_total(done, len(files), time.time() - start_time))

    if workers == 1:
        for src in tqdm(files, desc="Converting", unit="file"):
            result = convert_one(src, config, on_progress=on_progress, debug=debug)
            _record(result)
            summary.add(result)
        return summary

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futs = {
            executor.submit(convert_one, src, config, on_progress, debug): idx
            for idx, src in enumerate(files)
        }
        results: List[Optional[ConversionResult]] = [None] * len(files)
        with tqdm(total=len(files), desc="Converting", unit="file") as bar:
            for fut in as_completed(futs):
                result = fut.result()
                _record(result)
                results[futs[fut]] = result
                bar.update(1)

    for result in results:
        summary.add(result)
    return summary

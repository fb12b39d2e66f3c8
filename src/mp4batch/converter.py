#!/usr/bin/env python3
"""
mp4batch: convert every video in a folder to a fast-start H.264/AAC MP4.

Drop .webm, .mkv, .avi, .mov or .flv files into ./input and run `mp4batch`.
Each file is converted by ffmpeg into ./output/<name>.mp4, one after the
other, and a summary of successes and failures is printed at the end.
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import mp4batch as mp4batch_module
from mp4batch import convert
from mp4batch.convert import BatchSummary, ConversionConfig, ConversionJob, ConversionResult
from mp4batch.utils import FFMPEG_DOWNLOAD_URL, LogLevel
from mp4batch.utils import file_util, logger


class BatchConverter:
    """Checks ffmpeg, prepares the folders and converts everything it finds."""

    def __init__(self, config: ConversionConfig = ConversionConfig(), debug: bool = False):
        self.config = config
        self.debug = debug

    def check_engine_available(self) -> bool:
        """Return True if ffmpeg answers a codec-list query."""
        available, detail = convert.probe_engine(self.config.ffmpeg)
        if not available:
            logger.log("engine.unavailable", LogLevel.ERROR,
                       ffmpeg=self.config.ffmpeg,
                       error=detail)
            logger.safe_print(f"❌ ffmpeg is not installed or cannot be run. Install it from {FFMPEG_DOWNLOAD_URL}")
            return False

        logger.log("engine.available", LogLevel.INFO, ffmpeg=detail)
        return True

    def ensure_workspace(self) -> bool:
        """Create the input and output folders if needed. Returns False on failure."""
        try:
            file_util.ensure_directories(self.config.input_dir, self.config.output_dir)
        except OSError as e:
            logger.log("workspace.error", LogLevel.ERROR,
                       input=str(self.config.input_dir),
                       output=str(self.config.output_dir),
                       error=str(e))
            return False

        logger.log("workspace.ready", LogLevel.INFO,
                   input=str(self.config.input_dir),
                   output=str(self.config.output_dir))
        return True

    def list_convertible_inputs(self) -> list[Path]:
        return convert.iter_video_files(self.config)

    def convert_one(self, source: Path) -> ConversionResult:
        return convert.convert_one(source, self.config, on_progress=self._on_progress, debug=self.debug)

    def convert_all(self) -> BatchSummary:
        """Convert every convertible input and print a summary."""
        logger.safe_print("🚀 Starting batch conversion...")

        files = self.list_convertible_inputs()
        if not files:
            logger.safe_print("⚠️  No convertible files found.")
            logger.safe_print(f"Put video files into {self.config.input_dir}")
            return BatchSummary()

        logger.safe_print(f"📁 Found {len(files)} file(s) to convert:")
        for f in files:
            logger.safe_print(f"  - {f.name}")

        logger.log("batch.start", LogLevel.INFO,
                   files_found=len(files),
                   source=str(self.config.input_dir),
                   output=str(self.config.output_dir),
                   workers=convert.effective_workers(self.config.workers))

        summary = convert.convert_all(files, self.config, on_progress=self._on_progress, debug=self.debug)
        self.print_summary(summary)
        return summary

    @staticmethod
    def print_summary(summary: BatchSummary) -> None:
        logger.safe_print("\n📋 Conversion results:")
        logger.safe_print(f"✅ Succeeded: {summary.success_count} file(s)")
        logger.safe_print(f"❌ Failed: {summary.failure_count} file(s)")

        if summary.failures:
            logger.safe_print("\n❌ Failed files:")
            for result in summary.failures:
                logger.safe_print(f"  - {result.source.name}: {result.error}")

        logger.log("batch.end", LogLevel.INFO,
                   ok=summary.success_count,
                   fail=summary.failure_count)

    def run(self) -> Optional[BatchSummary]:
        """Check ffmpeg, prepare folders, convert. Returns None if ffmpeg is unusable."""
        logger.safe_print("🎬 Batch MP4 converter")
        logger.safe_print("=" * 40)

        if not self.check_engine_available():
            return None

        # A failure here is reported and the run carries on; listing will
        # then report the missing input folder as well.
        self.ensure_workspace()

        return self.convert_all()

    def _on_progress(self, job: ConversionJob, percent: float) -> None:
        logger.log("convert.percent", LogLevel.TRACE, file=job.source.name, pct=round(percent, 1))


def build_config(args: argparse.Namespace) -> ConversionConfig:
    """Apply command line overrides to the default configuration."""
    config = ConversionConfig()
    overrides = {}
    if args.input:
        overrides["input_dir"] = Path(args.input).expanduser()
    if args.output:
        overrides["output_dir"] = Path(args.output).expanduser()
    if args.crf is not None:
        overrides["crf"] = args.crf
    if args.preset:
        overrides["preset"] = args.preset
    if args.workers is not None:
        overrides["workers"] = args.workers
    return replace(config, **overrides)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert every .webm/.mkv/.avi/.mov/.flv file in a folder to H.264/AAC MP4 using ffmpeg.",
        epilog="Example: mp4batch --input ./input --output ./output",
    )
    parser.add_argument("--input", help="Folder containing source videos (default: ./input or $MP4BATCH_INPUT_DIR)")
    parser.add_argument("--output", help="Folder for converted MP4 files (default: ./output or $MP4BATCH_OUTPUT_DIR)")
    parser.add_argument("--crf", type=int, help="x264 constant rate factor, lower is better quality (default: 23)")
    parser.add_argument("--preset", help="x264 speed/efficiency preset (default: medium)")
    parser.add_argument("--workers", type=int,
                        help="Concurrent conversions, capped at the CPU count (default: 1, one file at a time)")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {mp4batch_module.__version__}")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    mp4batch_module.DEBUG = args.debug
    if args.debug:
        logger.set_log_level(LogLevel.DEBUG)
    else:
        logger.set_log_level(LogLevel.INFO)

    converter = BatchConverter(build_config(args), debug=args.debug)
    try:
        summary = converter.run()
    except KeyboardInterrupt:
        logger.safe_print("\nInterrupted by user")
        return 130

    # Failed conversions are reported in the summary, not through the exit code
    return 1 if summary is None else 0


if __name__ == "__main__":
    sys.exit(main())

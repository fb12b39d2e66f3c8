"""Unit tests for the ffmpeg glue in mp4batch.convert.core."""

from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import pytest

from mp4batch.convert import ConversionConfig, batch, core
from mp4batch.utils import system_util


class FakeProcess:
    def __init__(self, stderr_text: str, returncode: int) -> None:
        self.stderr = io.StringIO(stderr_text)
        self.returncode = returncode

    def poll(self):
        return self.returncode

    def communicate(self):
        return "", ""


def test_build_ffmpeg_cmd_uses_fixed_encoding_options() -> None:
    cmd = core.build_ffmpeg_cmd(Path("in/clip.webm"), Path("out/clip.mp4"))

    assert cmd[0] == "ffmpeg"
    assert cmd[cmd.index("-i") + 1] == str(Path("in/clip.webm"))
    assert cmd[cmd.index("-c:v") + 1] == "libx264"
    assert cmd[cmd.index("-c:a") + 1] == "aac"
    assert cmd[cmd.index("-preset") + 1] == "medium"
    assert cmd[cmd.index("-crf") + 1] == "23"
    assert cmd[cmd.index("-movflags") + 1] == "+faststart"
    assert "-y" in cmd
    assert cmd[-1] == str(Path("out/clip.mp4"))


def test_build_ffmpeg_cmd_honours_config() -> None:
    config = ConversionConfig(crf=18, preset="slow", ffmpeg="/opt/ffmpeg")
    cmd = core.build_ffmpeg_cmd(Path("a.mkv"), Path("a.mp4"), config)

    assert cmd[0] == "/opt/ffmpeg"
    assert cmd[cmd.index("-crf") + 1] == "18"
    assert cmd[cmd.index("-preset") + 1] == "slow"


def test_probe_engine_reports_missing_binary(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(cmd):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(system_util, "run_cmd", boom)

    available, detail = core.probe_engine("ffmpeg")

    assert available is False
    assert "No such file" in detail


def test_probe_engine_reports_nonzero_exit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(system_util, "run_cmd", lambda cmd: (1, "", "broken build\n"))

    assert core.probe_engine("ffmpeg") == (False, "broken build")


def test_probe_engine_queries_codec_list(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []

    def fake_run(cmd):
        seen.append(cmd)
        return 0, "Codecs:\n DEV.LS h264\n", ""

    monkeypatch.setattr(system_util, "run_cmd", fake_run)
    monkeypatch.setattr(system_util, "which", lambda binary: "/usr/bin/ffmpeg")

    assert core.probe_engine("ffmpeg") == (True, "/usr/bin/ffmpeg")
    assert seen == [["ffmpeg", "-hide_banner", "-codecs"]]


def test_ffprobe_duration_parses_json(monkeypatch: pytest.MonkeyPatch) -> None:
    out = json.dumps({"format": {"duration": "12.5"}})
    monkeypatch.setattr(system_util, "run_cmd", lambda cmd: (0, out, ""))

    assert core.ffprobe_duration(Path("clip.webm")) == 12.5


@pytest.mark.parametrize("result", [(1, "", "err"), (0, "{}", ""), (0, "not json", "")])
def test_ffprobe_duration_unknown(monkeypatch: pytest.MonkeyPatch, result) -> None:
    monkeypatch.setattr(system_util, "run_cmd", lambda cmd: result)

    assert core.ffprobe_duration(Path("clip.webm")) is None


def test_parse_progress() -> None:
    line = "frame= 1234 fps=18 q=-0.0 size=  10240KiB time=00:00:30.00 bitrate=1234.5kbits/s speed=1.5x"

    assert core.parse_progress(line, 60.0) == (50.0, 1.5)
    assert core.parse_progress(line, None) is None
    assert core.parse_progress("time=N/A speed=N/A", 60.0) is None
    assert core.parse_progress("Input #0, matroska", 60.0) is None


def test_parse_progress_is_capped_at_100() -> None:
    percent, _ = core.parse_progress("time=00:01:10.00 speed=2x", 60.0)
    assert percent == 100.0


def test_error_message_skips_stats_lines() -> None:
    stderr = "frame=  10 fps=0.0 time=00:00:00.40\ninvalid frame\nframe=  11 fps=0.0\n"

    assert core.error_message(1, stderr) == "invalid frame"
    assert core.error_message(69, "") == "ffmpeg exited with code 69"


def test_transcode_video_reports_progress(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    stderr = (
        "frame=  100 fps=25 time=00:00:02.50 bitrate=N/A speed=2.0x\n"
        "frame=  200 fps=25 time=00:00:05.00 bitrate=N/A speed=2.0x\n"
        "frame=  400 fps=25 time=00:00:10.00 bitrate=N/A speed=2.0x\n"
    )
    commands = []

    def fake_popen(cmd, **kwargs):
        commands.append(cmd)
        return FakeProcess(stderr, 0)

    monkeypatch.setattr(core, "ffprobe_duration", lambda path, ffprobe="ffprobe": 10.0)
    monkeypatch.setattr(core.subprocess, "Popen", fake_popen)

    percents = []
    code, _, err = core.transcode_video(tmp_path / "clip.webm", tmp_path / "clip.mp4",
                                        on_progress=percents.append)

    assert code == 0
    assert percents == [25.0, 50.0, 100.0]
    assert "time=00:00:10.00" in err
    assert commands[0][-1] == str(tmp_path / "clip.mp4")


def test_transcode_video_failure_keeps_existing_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
                                                      capsys: pytest.CaptureFixture) -> None:
    dst = tmp_path / "broken.mp4"
    dst.write_bytes(b"from an earlier run")

    monkeypatch.setattr(core, "ffprobe_duration", lambda path, ffprobe="ffprobe": None)
    monkeypatch.setattr(core.subprocess, "Popen", lambda cmd, **kwargs: FakeProcess("invalid frame\n", 1))

    percents = []
    code, _, err = core.transcode_video(tmp_path / "broken.mkv", dst, on_progress=percents.append)

    assert code == 1
    assert err == "invalid frame\n"
    assert percents == []
    assert dst.read_bytes() == b"from an earlier run"
    out = capsys.readouterr().out
    assert "convert.failed" in out
    assert 'error="invalid frame"' in out


def test_transcode_video_logs_command(tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
                                      capsys: pytest.CaptureFixture) -> None:
    monkeypatch.setattr(core, "ffprobe_duration", lambda path, ffprobe="ffprobe": None)
    monkeypatch.setattr(core.subprocess, "Popen", lambda cmd, **kwargs: FakeProcess("", 0))

    core.transcode_video(tmp_path / "clip.webm", tmp_path / "clip.mp4")

    out = capsys.readouterr().out
    assert "convert.start" in out
    assert "convert.command" in out
    assert "libx264" in out
    assert "convert.complete" in out


def test_failed_conversion_keeps_same_stem_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = ConversionConfig(input_dir=tmp_path / "in", output_dir=tmp_path / "out")
    config.input_dir.mkdir()
    config.output_dir.mkdir()
    for name in ("a.avi", "a.mkv"):
        (config.input_dir / name).write_bytes(b"")

    def fake_popen(cmd, **kwargs):
        src = cmd[cmd.index("-i") + 1]
        if src.endswith(".avi"):
            Path(cmd[-1]).write_bytes(b"mp4 from avi")
            return FakeProcess("", 0)
        return FakeProcess("invalid data\n", 1)

    monkeypatch.setattr(core, "ffprobe_duration", lambda path, ffprobe="ffprobe": None)
    monkeypatch.setattr(core.subprocess, "Popen", fake_popen)

    summary = batch.convert_all(batch.iter_video_files(config), config)

    assert [r.source.name for r in summary.successes] == ["a.avi"]
    assert [(r.source.name, r.error) for r in summary.failures] == [("a.mkv", "invalid data")]
    assert (config.output_dir / "a.mp4").read_bytes() == b"mp4 from avi"


def test_undecodable_stderr_is_isolated_per_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = ConversionConfig(input_dir=tmp_path / "in", output_dir=tmp_path / "out")
    config.input_dir.mkdir()
    config.output_dir.mkdir()
    for name in ("a.webm", "b.webm"):
        (config.input_dir / name).write_bytes(b"")

    script = "import sys; sys.stderr.buffer.write(b'bad \\xff\\xfe name: Invalid data\\n'); sys.exit(1)"
    monkeypatch.setattr(core, "ffprobe_duration", lambda path, ffprobe="ffprobe": None)
    monkeypatch.setattr(core, "build_ffmpeg_cmd", lambda src, dst, config: [sys.executable, "-c", script])

    summary = batch.convert_all(batch.iter_video_files(config), config)

    assert summary.success_count == 0
    assert [r.source.name for r in summary.failures] == ["a.webm", "b.webm"]
    assert all(r.error.endswith("name: Invalid data") for r in summary.failures)
    assert "�" in summary.failures[0].error


def test_run_cmd_replaces_undecodable_output() -> None:
    code, out, _ = system_util.run_cmd([sys.executable, "-c", "import sys; sys.stdout.buffer.write(b'\\xff ok')"])

    assert code == 0
    assert out == "� ok"

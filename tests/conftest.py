"""Shared fixtures: a throwaway workspace and a fake ffmpeg."""

from __future__ import annotations

from pathlib import Path

import pytest

from mp4batch.convert import ConversionConfig, core


@pytest.fixture
def config(tmp_path: Path) -> ConversionConfig:
    return ConversionConfig(input_dir=tmp_path / "input", output_dir=tmp_path / "output")


@pytest.fixture
def workspace(config: ConversionConfig) -> ConversionConfig:
    config.input_dir.mkdir()
    config.output_dir.mkdir()
    return config


class FakeEngine:
    """Stands in for core.transcode_video; fails files listed in `errors`."""

    def __init__(self) -> None:
        self.errors: dict[str, str] = {}
        self.calls: list[tuple[Path, Path]] = []

    def __call__(self, src, dst, config, on_progress=None, debug=False):
        self.calls.append((src, dst))
        if src.name in self.errors:
            return 1, "", f"frame=    1 fps=0.0 time=00:00:00.04\n{self.errors[src.name]}\n"
        if on_progress:
            on_progress(50.0)
            on_progress(100.0)
        dst.write_bytes(b"mp4")
        return 0, "", ""


@pytest.fixture
def fake_engine(monkeypatch: pytest.MonkeyPatch) -> FakeEngine:
    engine = FakeEngine()
    monkeypatch.setattr(core, "transcode_video", engine)
    return engine

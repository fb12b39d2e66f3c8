"""
Folder helpers for the conversion workspace.
"""
from pathlib import Path
from typing import Iterable, Set


def ensure_directories(*folders: Path) -> None:
    """
    Create each folder (and its parents) if it does not exist yet.
    Existing folders are left untouched. Raises OSError on failure.
    """
    for folder in folders:
        Path(folder).mkdir(parents=True, exist_ok=True)


def list_files_with_suffix(folder: Path, suffixes: Iterable[str]) -> list[Path]:
    """
    Return regular files directly inside `folder` whose suffix (lower-cased)
    is one of `suffixes`, sorted by name. Does not descend into subfolders.
    """
    wanted: Set[str] = {s.lower() for s in suffixes}
    files = [p for p in Path(folder).iterdir() if p.is_file() and p.suffix.lower() in wanted]
    return sorted(files, key=lambda p: p.name)


def output_path_for(source: Path, output_root: Path, suffix: str) -> Path:
    """Place `source` under `output_root`, replacing its extension with `suffix`."""
    return Path(output_root) / f"{Path(source).stem}{suffix}"

"""
Helpers for running external commands and locating binaries.

Functions:
    - run_cmd: Executes a command and returns its exit code along with its
      standard output and error streams.
    - which: Resolves a binary on the system's PATH, or None when it is absent.
"""
import shutil
import subprocess
from typing import Optional, Tuple, List


def run_cmd(cmd: List[str]) -> Tuple[int, str, str]:
    """Run a command and return (code, stdout, stderr).

    Raises OSError when the binary cannot be started (missing, not executable).
    """
    p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True,
                       encoding="utf-8", errors="replace")
    return p.returncode, p.stdout, p.stderr


def which(binary: str) -> Optional[str]:
    """Return the full path of `binary` on PATH, or None if not found."""
    return shutil.which(binary)

"""Checks on how and where the executable was invoked."""

from __future__ import annotations

import os
import sys
from pathlib import Path


def _normalize(directory: str | Path) -> str:
    return os.path.normcase(str(Path(directory).expanduser().resolve()))


def running_from_path(executable: str | None = None, path_env: str | None = None) -> bool:
    """True if the directory holding *executable* is listed on ``PATH``.

    Defaults to the running script (``sys.argv[0]``) and the process
    environment.
    """
    executable = executable or sys.argv[0]
    if not executable:
        return False
    if path_env is None:
        path_env = os.environ.get("PATH", "")
    exe_dir = _normalize(Path(executable).parent)
    return any(
        _normalize(entry.strip()) == exe_dir
        for entry in path_env.split(os.pathsep)
        if entry.strip()
    )

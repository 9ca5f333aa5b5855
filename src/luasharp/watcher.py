"""Watch mode: poll the source tree and rebuild files whose mtime changed."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

from luasharp.builder import BuildResult, build_project, find_sources
from luasharp.config import ProjectConfig

DEFAULT_INTERVAL = 1.0


class PollingWatcher:
    """Cross-platform mtime polling over every source file of a project.

    Files that appear after the first scan are reported as changed; files
    that disappear are forgotten.
    """

    def __init__(self, config: ProjectConfig) -> None:
        self._config = config
        self._snapshot: dict[Path, float] = self._scan()

    def _scan(self) -> dict[Path, float]:
        snapshot: dict[Path, float] = {}
        for path in find_sources(self._config):
            try:
                snapshot[path] = path.stat().st_mtime
            except FileNotFoundError:
                continue
        return snapshot

    def poll(self) -> list[Path]:
        """Return the files added or modified since the previous poll, sorted."""
        current = self._scan()
        changed = [
            path for path, mtime in current.items()
            if self._snapshot.get(path) != mtime
        ]
        self._snapshot = current
        return sorted(changed)


def watch_project(
    config: ProjectConfig,
    on_build: Callable[[BuildResult], None],
    *,
    interval: float = DEFAULT_INTERVAL,
    max_cycles: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Build everything once, then rebuild changed files until interrupted.

    *max_cycles* bounds the number of polls; ``None`` polls forever.
    """
    watcher = PollingWatcher(config)
    on_build(build_project(config))

    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        sleep(interval)
        cycles += 1
        changed = watcher.poll()
        if changed:
            on_build(build_project(config, changed))

"""Modification-time sources for the staleness tracker."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Mapping

from shlibguard.errors import UnreadableFileError

# artifact -> mtime, or None when the artifact does not exist
MtimeSource = Callable[[str], "float | None"]


class FilesystemMtimes:
    """Reads mtimes with os.stat, resolving artifacts relative to ``root``."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root) if root is not None else None

    def path_of(self, artifact: str) -> Path:
        path = Path(artifact)
        if self.root is not None and not path.is_absolute():
            path = self.root / path
        return path

    def __call__(self, artifact: str) -> float | None:
        path = self.path_of(artifact)
        try:
            return path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise UnreadableFileError(str(path), exc.strerror or str(exc)) from exc

    def set(self, artifact: str, when: float) -> None:
        os.utime(self.path_of(artifact), (when, when))

    def reset(self, artifacts: Mapping[str, object] | list[str], when: float) -> None:
        """Make every existing artifact look as old as ``when``."""
        for artifact in artifacts:
            if self.path_of(artifact).exists():
                self.set(artifact, when)


class StaticMtimes:
    """In-memory mtimes, for predicting staleness without touching disk."""

    def __init__(self, mtimes: Mapping[str, float] | None = None) -> None:
        self._mtimes: dict[str, float] = dict(mtimes or {})

    def __call__(self, artifact: str) -> float | None:
        return self._mtimes.get(artifact)

    def set(self, artifact: str, when: float) -> None:
        self._mtimes[artifact] = when

    def remove(self, artifact: str) -> None:
        self._mtimes.pop(artifact, None)

    def reset(self, artifacts: Mapping[str, object] | list[str], when: float) -> None:
        for artifact in artifacts:
            if artifact in self._mtimes:
                self._mtimes[artifact] = when


class ManualClock:
    """Explicit, strictly increasing timestamps in place of wall-clock sleeps."""

    def __init__(self, start: float = 1_000_000.0, step: float = 1.0) -> None:
        self._now = start
        self.step = step

    def now(self) -> float:
        return self._now

    def tick(self, delta: float | None = None) -> float:
        self._now += self.step if delta is None else delta
        return self._now

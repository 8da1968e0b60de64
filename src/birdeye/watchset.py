"""Tracks which directories are registered with the notification source."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, FrozenSet, Set

logger = logging.getLogger(__name__)

Register = Callable[[Path, bool], None]


class WatchSetupError(Exception):
    """Raised when the initial recursive registration cannot be completed."""


class WatchSetManager:
    """Owns the set of watched directories.

    ``register(path, recursive)`` is the source's registration call. The root
    is registered once, recursively, so the backend keeps every directory
    beneath it in a single watch; directories under a recursive watch are only
    recorded here. The set only ever grows: a directory removed from disk keeps
    its entry.
    """

    def __init__(self, register: Register):
        self._register = register
        self._watched: Set[Path] = set()
        self._recursive_roots: Set[Path] = set()

    @property
    def watched(self) -> FrozenSet[Path]:
        return frozenset(self._watched)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return Path(path).absolute() in self._watched

    def __len__(self) -> int:
        return len(self._watched)

    def initialize(self, root: Path) -> None:
        """Register ``root`` recursively and record every directory beneath it.

        Any failure, including on a single subdirectory, aborts startup.
        """

        root = Path(root).absolute()
        if not root.is_dir():
            raise WatchSetupError(f"Cannot walk {root}: not a directory")

        def _raise(exc: OSError) -> None:
            raise exc

        try:
            self._register(root, True)
            self._recursive_roots.add(root)
            self._watched.add(root)
            for dirpath, _dirnames, _filenames in os.walk(root, onerror=_raise):
                self._watched.add(Path(dirpath))
        except OSError as exc:
            raise WatchSetupError(f"Failed to add directory to watcher: {exc}") from exc

        logger.info("Watching %s directories under %s", len(self._watched), root)

    def add_directory(self, path: Path) -> bool:
        """Register ``path`` if not yet watched. Failures are logged, not raised."""

        path = Path(path).absolute()
        if path in self._watched:
            logger.debug("Directory already watched: %s", path)
            return True
        if not self._covered(path):
            try:
                self._register(path, False)
            except OSError as exc:
                logger.warning("Failed to add new directory to watcher: %s (%s)", path, exc)
                return False
        self._watched.add(path)
        logger.info("Watching new directory: %s", path)
        return True

    def _covered(self, path: Path) -> bool:
        return any(root in path.parents for root in self._recursive_roots)

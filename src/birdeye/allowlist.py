"""Allowed file extension set loaded once at startup."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import FrozenSet, Iterable, Iterator, Union

from .config import ConfigError

logger = logging.getLogger(__name__)


class AllowlistError(ConfigError):
    """Raised when the allowlist file cannot be read."""


def normalize_extension(extension: str) -> str:
    """Return ``extension`` trimmed, lower-cased and with a leading dot.

    An empty string stays empty so that extensionless files never match.
    """

    ext = extension.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def extension_of(path: Union[str, Path]) -> str:
    """Normalized extension of ``path``, ``""`` when it has none."""

    _root, ext = os.path.splitext(os.fspath(path))
    return normalize_extension(ext)


class AllowlistStore:
    """Immutable set of allowed, normalized file extensions."""

    def __init__(self, extensions: Iterable[str]):
        normalized = (normalize_extension(ext) for ext in extensions)
        self._extensions: FrozenSet[str] = frozenset(ext for ext in normalized if ext)

    @classmethod
    def load(cls, path: Path) -> "AllowlistStore":
        """Read one extension per line; blank lines are skipped."""

        try:
            lines = Path(path).read_text().splitlines()
        except OSError as exc:
            raise AllowlistError(f"Could not open allowed extensions file {path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise AllowlistError(f"Error reading allowed extensions file {path}: {exc}") from exc

        store = cls(line for line in lines if line.strip())
        logger.info("Loaded %s allowed extensions from %s", len(store), path)
        return store

    @property
    def extensions(self) -> FrozenSet[str]:
        return self._extensions

    def is_allowed(self, path: Union[str, Path]) -> bool:
        return extension_of(path) in self._extensions

    def __contains__(self, extension: object) -> bool:
        if not isinstance(extension, str):
            return False
        return normalize_extension(extension) in self._extensions

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._extensions))

    def __len__(self) -> int:
        return len(self._extensions)

"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path
from typing import List, Tuple
from unittest.mock import MagicMock

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from birdeye.allowlist import AllowlistStore  # noqa: E402
from birdeye.context import WatchContext  # noqa: E402
from birdeye.events import Op  # noqa: E402
from birdeye.notifier import DeliveryError  # noqa: E402
from birdeye.source import EventSource  # noqa: E402


class RecordingNotifier:
    """Notifier that remembers every request instead of showing it."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[Tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.calls.append((title, body))
        if self.fail:
            raise DeliveryError("notification channel unavailable")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def observer():
    """Stand-in for a watchdog observer; nothing is really watched."""
    fake = MagicMock()
    fake.is_alive.return_value = False
    return fake


@pytest.fixture
def source(observer):
    return EventSource(observer=observer)


@pytest.fixture
def watched_root(tmp_path):
    root = tmp_path / "watched"
    root.mkdir()
    return root


@pytest.fixture
def make_context(source, notifier):
    """Factory building a WatchContext around the fake source."""

    def _make(allowed=(".txt", ".md"), events=(Op.CREATE, Op.WRITE, Op.REMOVE, Op.RENAME), ignored=()):
        return WatchContext.build(
            source,
            AllowlistStore(allowed),
            frozenset(events),
            notifier,
            ignored=ignored,
        )

    return _make

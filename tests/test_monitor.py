"""Tests for birdeye.monitor."""

import threading

import pytest

from birdeye.allowlist import AllowlistError
from birdeye.config import WatchConfig
from birdeye.dispatcher import DispatcherState
from birdeye.events import Op
from birdeye.monitor import DirectoryMonitor
from birdeye.notifier import DesktopNotifier, LoggingNotifier
from birdeye.watchset import WatchSetupError


@pytest.fixture
def allowlist_file(tmp_path):
    path = tmp_path / "allowed_extensions.txt"
    path.write_text(".txt\n.md\n")
    return path


@pytest.fixture
def config(tmp_path, watched_root, allowlist_file):
    (watched_root / "sub").mkdir()
    return WatchConfig(
        root_path=watched_root,
        log_file=tmp_path / "monitor.log",
        events=frozenset({Op.CREATE}),
        allowlist=allowlist_file,
    )


def test_start_registers_tree(config, source, observer, notifier, watched_root):
    monitor = DirectoryMonitor(config, notifier=notifier, source=source)

    monitor.start()

    observer.start.assert_called_once()
    assert monitor.context.watch_set.watched == frozenset({watched_root, watched_root / "sub"})
    assert monitor.context.allowlist.extensions == frozenset({".txt", ".md"})
    assert monitor.context.ignored == frozenset({config.log_file})
    assert monitor.context.notifier is notifier
    assert monitor.dispatcher.state is DispatcherState.RUNNING
    observer.schedule.assert_called_once_with(source.handler, str(watched_root), recursive=True)


def test_missing_allowlist_fails_before_watching(config, source, observer, tmp_path):
    config = WatchConfig(
        root_path=config.root_path,
        log_file=config.log_file,
        events=config.events,
        allowlist=tmp_path / "missing.txt",
    )
    monitor = DirectoryMonitor(config, source=source)

    with pytest.raises(AllowlistError):
        monitor.start()

    observer.start.assert_not_called()


def test_walk_failure_closes_source(config, source, observer):
    observer.schedule.side_effect = OSError(28, "inotify watch limit reached")
    monitor = DirectoryMonitor(config, source=source)

    with pytest.raises(WatchSetupError):
        monitor.start()

    observer.stop.assert_called_once()
    assert monitor.context is None


def test_run_returns_after_stop(config, source, notifier):
    monitor = DirectoryMonitor(config, notifier=notifier, source=source)
    monitor.start()
    timer = threading.Timer(0.1, monitor.stop)
    timer.start()

    monitor.run()

    timer.join()
    assert monitor.dispatcher.state is DispatcherState.TERMINATED


@pytest.mark.parametrize("desktop_notify, expected", [(True, DesktopNotifier), (False, LoggingNotifier)])
def test_default_notifier_follows_config(config, source, desktop_notify, expected):
    config = WatchConfig(
        root_path=config.root_path,
        log_file=config.log_file,
        events=config.events,
        allowlist=config.allowlist,
        desktop_notify=desktop_notify,
    )
    monitor = DirectoryMonitor(config, source=source)

    monitor.start()

    assert isinstance(monitor.context.notifier, expected)


def test_run_raises_when_start_left_no_dispatcher(config, source, monkeypatch):
    monitor = DirectoryMonitor(config, source=source)
    monkeypatch.setattr(monitor, "start", lambda: None)

    with pytest.raises(RuntimeError, match="Monitor failed to start"):
        monitor.run()

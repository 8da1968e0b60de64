"""Tests for birdeye.watchset."""

import logging
from unittest.mock import Mock

import pytest

from birdeye.watchset import WatchSetManager, WatchSetupError


@pytest.fixture
def tree(watched_root):
    (watched_root / "a" / "b").mkdir(parents=True)
    (watched_root / "c").mkdir()
    (watched_root / "top.txt").write_text("x")
    (watched_root / "a" / "inner.txt").write_text("x")
    return watched_root


def test_initialize_registers_root_once_and_records_every_directory(tree):
    register = Mock()
    manager = WatchSetManager(register)

    manager.initialize(tree)

    expected = {tree, tree / "a", tree / "a" / "b", tree / "c"}
    assert manager.watched == frozenset(expected)
    register.assert_called_once_with(tree, True)
    assert tree / "top.txt" not in manager


def test_initialize_handles_trees_wider_than_the_instance_limit(watched_root):
    # Linux defaults to 128 inotify instances per user; one per directory would exhaust it.
    for index in range(200):
        (watched_root / f"dir{index:03d}" / "nested").mkdir(parents=True)
    register = Mock()
    manager = WatchSetManager(register)

    manager.initialize(watched_root)

    register.assert_called_once_with(watched_root, True)
    assert len(manager) == 401
    assert watched_root / "dir199" / "nested" in manager


def test_initialize_fails_when_root_registration_fails(tree):
    register = Mock(side_effect=OSError(24, "Too many open files"))
    manager = WatchSetManager(register)

    with pytest.raises(WatchSetupError, match="Failed to add directory to watcher"):
        manager.initialize(tree)

    assert len(manager) == 0


def test_initialize_fails_when_walk_fails(tree, monkeypatch):
    def broken_walk(top, onerror=None):
        onerror(PermissionError(13, "Permission denied", str(top / "a")))
        yield from ()

    monkeypatch.setattr("birdeye.watchset.os.walk", broken_walk)
    manager = WatchSetManager(Mock())

    with pytest.raises(WatchSetupError, match="Permission denied"):
        manager.initialize(tree)


def test_initialize_rejects_missing_root(tmp_path):
    manager = WatchSetManager(Mock())

    with pytest.raises(WatchSetupError):
        manager.initialize(tmp_path / "missing")


def test_add_directory_under_recursive_root_is_recorded_only(tree):
    register = Mock()
    manager = WatchSetManager(register)
    manager.initialize(tree)
    folder = tree / "c" / "fresh"
    folder.mkdir()

    assert manager.add_directory(folder) is True

    register.assert_called_once_with(tree, True)
    assert folder in manager


def test_add_directory_is_idempotent(watched_root):
    register = Mock()
    manager = WatchSetManager(register)
    folder = watched_root / "new"
    folder.mkdir()

    assert manager.add_directory(folder) is True
    assert manager.add_directory(folder) is True

    register.assert_called_once_with(folder, False)
    assert len(manager) == 1
    assert folder in manager
    assert str(folder) in manager


def test_add_directory_failure_is_logged_not_raised(watched_root, caplog):
    register = Mock(side_effect=FileNotFoundError(2, "No such file or directory"))
    manager = WatchSetManager(register)

    with caplog.at_level(logging.WARNING, logger="birdeye.watchset"):
        assert manager.add_directory(watched_root / "vanished") is False

    assert len(manager) == 0
    assert "Failed to add new directory to watcher" in caplog.text


def test_failed_directory_can_be_retried(watched_root):
    register = Mock(side_effect=[OSError("busy"), None])
    manager = WatchSetManager(register)

    assert manager.add_directory(watched_root) is False
    assert manager.add_directory(watched_root) is True
    assert watched_root in manager


def test_watched_set_never_shrinks(watched_root):
    manager = WatchSetManager(Mock())
    folder = watched_root / "tmp"
    folder.mkdir()
    manager.add_directory(folder)

    folder.rmdir()

    assert folder in manager

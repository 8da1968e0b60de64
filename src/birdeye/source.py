"""Notification source backed by a watchdog observer.

The observer and its emitter threads are producers; everything they see is
translated into :class:`RawEvent` objects and pushed onto a single queue that
the dispatcher drains. Errors and the close signal travel on the same queue so
that one consumer services exactly one item at a time, in delivery order.
"""
from __future__ import annotations

import logging
import os
import queue
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from .events import Op, RawEvent

logger = logging.getLogger(__name__)

_STOP_JOIN_TIMEOUT = 5.0


class SourceError(Exception):
    """Raised when the notification source cannot be started."""


class ItemKind(str, Enum):
    """What a queued item carries."""

    EVENT = "event"
    ERROR = "error"
    CLOSED = "closed"


@dataclass(frozen=True)
class SourceItem:
    kind: ItemKind
    event: Optional[RawEvent] = None
    error: Optional[BaseException] = None


def translate(event: FileSystemEvent) -> Optional[RawEvent]:
    """Map a watchdog event onto a :class:`RawEvent`, or ``None`` to ignore it.

    Directory modifications are dropped: the backend reports one for the
    parent of every entry created or removed inside it. Attribute changes
    arrive from watchdog as modifications and therefore map to WRITE.
    """

    src_path = Path(os.fsdecode(event.src_path))
    event_type = event.event_type

    if event_type == EVENT_TYPE_CREATED:
        return RawEvent.of(src_path, Op.CREATE)
    if event_type == EVENT_TYPE_MODIFIED:
        if event.is_directory:
            return None
        return RawEvent.of(src_path, Op.WRITE)
    if event_type == EVENT_TYPE_DELETED:
        return RawEvent.of(src_path, Op.REMOVE)
    if event_type == EVENT_TYPE_MOVED:
        dest_path = Path(os.fsdecode(event.dest_path))
        op = Op.RENAME if dest_path.parent == src_path.parent else Op.MOVE
        return RawEvent.of(dest_path, op, previous_path=src_path)
    return None


class _QueueingHandler(FileSystemEventHandler):
    def __init__(self, source: "EventSource"):
        super().__init__()
        self._source = source

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            raw = translate(event)
        except Exception as exc:  # pragma: no cover - surfaced on the error channel
            self._source.report_error(exc)
            return
        if raw is not None:
            self._source.put_event(raw)


class EventSource:
    """Owns the watchdog observer and the queue the dispatcher consumes."""

    def __init__(
        self,
        *,
        polling: bool = False,
        poll_interval: float = 1.0,
        observer: Optional[BaseObserver] = None,
    ):
        if observer is None:
            observer = PollingObserver(timeout=poll_interval) if polling else Observer()
        self._observer = observer
        self._queue: "queue.Queue[SourceItem]" = queue.Queue()
        self._handler = _QueueingHandler(self)
        self._closed = False

    @property
    def handler(self) -> FileSystemEventHandler:
        return self._handler

    def start(self) -> None:
        try:
            self._observer.start()
        except (OSError, RuntimeError) as exc:
            raise SourceError(f"Failed to create file watcher: {exc}") from exc
        logger.debug("Started %s", type(self._observer).__name__)

    def schedule(self, path: Path, recursive: bool = False) -> None:
        """Register one directory. OS errors propagate.

        A recursive watch keeps one emitter (one inotify instance on Linux)
        for the whole subtree, including directories created later.
        """

        self._observer.schedule(self._handler, str(path), recursive=recursive)

    def close(self) -> None:
        """Stop the observer and wake the consumer with a close signal."""

        if self._closed:
            return
        self._closed = True
        self._observer.stop()
        if self._observer.is_alive():
            self._observer.join(timeout=_STOP_JOIN_TIMEOUT)
        self._queue.put(SourceItem(ItemKind.CLOSED))

    def put_event(self, event: RawEvent) -> None:
        self._queue.put(SourceItem(ItemKind.EVENT, event=event))

    def report_error(self, error: BaseException) -> None:
        self._queue.put(SourceItem(ItemKind.ERROR, error=error))

    def get(self, timeout: Optional[float] = None) -> SourceItem:
        """Block until the next item is available."""

        return self._queue.get(timeout=timeout)

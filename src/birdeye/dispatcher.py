"""Single-consumer loop sequencing events through classification and policy."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Iterable

from .classifier import EventClassifier
from .context import WatchContext
from .events import Op, RawEvent
from .policy import PolicyEnforcer, PolicyOutcome
from .source import EventSource, ItemKind, SourceItem
from .watchset import WatchSetManager

logger = logging.getLogger(__name__)


class DispatcherState(str, Enum):
    """RUNNING from construction, which follows a successful startup."""

    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass
class DispatcherStats:
    """Counters emitted by the dispatcher for observability."""

    events: int = 0
    logged: int = 0
    removed: int = 0
    errors: int = 0


class Dispatcher:
    """Drains the source queue one item at a time until it is closed.

    An item's handling, including any file removal and notification, finishes
    before the next item is taken off the queue.
    """

    def __init__(
        self,
        source: EventSource,
        classifier: EventClassifier,
        enforcer: PolicyEnforcer,
        watch_set: WatchSetManager,
        ignored: Iterable[Path] = (),
    ):
        self._source = source
        self._ignored: FrozenSet[Path] = frozenset(ignored)
        self._classifier = classifier
        self._enforcer = enforcer
        self._watch_set = watch_set
        self._state = DispatcherState.RUNNING
        self.stats = DispatcherStats()

    @classmethod
    def from_context(cls, context: WatchContext) -> "Dispatcher":
        return cls(
            context.source,
            EventClassifier(context.events),
            PolicyEnforcer.from_context(context),
            context.watch_set,
            context.ignored,
        )

    @property
    def state(self) -> DispatcherState:
        return self._state

    def run(self) -> None:
        """Block servicing events, errors and the close signal."""

        if self._state is DispatcherState.TERMINATED:
            raise RuntimeError("Dispatcher has already terminated")

        try:
            while True:
                item = self._source.get()
                if not self.process(item):
                    break
        finally:
            self._state = DispatcherState.TERMINATED
            logger.info(
                "Dispatcher stopped after %s events (%s logged, %s removed, %s errors)",
                self.stats.events,
                self.stats.logged,
                self.stats.removed,
                self.stats.errors,
            )

    def process(self, item: SourceItem) -> bool:
        """Handle one queued item. Returns ``False`` once the source has closed."""

        if item.kind is ItemKind.CLOSED:
            logger.debug("Event source closed")
            return False
        if item.kind is ItemKind.ERROR:
            self.handle_error(item.error)
        elif item.event is not None:
            try:
                self.handle_event(item.event)
            except Exception:  # pragma: no cover - protective logging
                self.stats.errors += 1
                logger.exception("Failed to handle event %s", item.event)
        return True

    def handle_event(self, event: RawEvent) -> None:
        if event.path in self._ignored:
            return
        self.stats.events += 1
        for line in self._classifier.describe(event):
            logger.info("%s", line)
            self.stats.logged += 1

        # Enforcement and directory tracking ignore the logging filter.
        if event.has(Op.CREATE):
            outcome = self._enforcer.handle_create(event)
            if outcome is PolicyOutcome.REMOVED:
                self.stats.removed += 1
        elif any(op.is_relocation for op in event.ops) and event.is_directory():
            # A directory renamed or moved into place is tracked like a new one.
            self._watch_set.add_directory(event.path)

    def handle_error(self, error: object) -> None:
        self.stats.errors += 1
        logger.error("Watcher error: %s", error)

"""Startup sequencing and lifetime of the directory watcher."""
from __future__ import annotations

import logging
from typing import Optional

from .allowlist import AllowlistStore
from .config import WatchConfig
from .context import WatchContext
from .dispatcher import Dispatcher
from .notifier import DesktopNotifier, LoggingNotifier, Notifier
from .source import EventSource
from .watchset import WatchSetupError

logger = logging.getLogger(__name__)


class DirectoryMonitor:
    """Watches a directory tree and enforces the extension allowlist."""

    def __init__(
        self,
        config: WatchConfig,
        *,
        notifier: Optional[Notifier] = None,
        source: Optional[EventSource] = None,
    ):
        self._config = config
        self._notifier = notifier
        self._source = source
        self._context: Optional[WatchContext] = None
        self._dispatcher: Optional[Dispatcher] = None

    @property
    def context(self) -> Optional[WatchContext]:
        return self._context

    @property
    def dispatcher(self) -> Optional[Dispatcher]:
        return self._dispatcher

    def start(self) -> None:
        """Load the allowlist, start the source and register the tree.

        Raises ``ConfigError`` for an unreadable allowlist and ``SourceError``
        or ``WatchSetupError`` when the tree cannot be watched.
        """

        if self._context is not None:
            return

        allowlist = AllowlistStore.load(self._config.allowlist)
        source = self._source or EventSource(
            polling=self._config.polling,
            poll_interval=self._config.poll_interval,
        )
        notifier = self._notifier or _default_notifier(self._config)

        source.start()
        context = WatchContext.build(
            source,
            allowlist,
            self._config.events,
            notifier,
            ignored=[self._config.log_file],
        )
        try:
            context.watch_set.initialize(self._config.root_path)
        except WatchSetupError:
            source.close()
            raise

        self._source = source
        self._context = context
        self._dispatcher = Dispatcher.from_context(context)

    def run(self) -> None:
        """Start if needed, then block until stopped or interrupted."""

        self.start()
        if self._dispatcher is None or self._source is None:
            raise RuntimeError("Monitor failed to start")

        logger.info("Starting to monitor directory: %s", self._config.root_path)
        try:
            self._dispatcher.run()
        except KeyboardInterrupt:
            logger.info("Monitor interrupted by user")
        finally:
            self._source.close()

    def stop(self) -> None:
        """Signal the dispatcher to stop once the current item is handled."""

        if self._source is not None:
            self._source.close()


def _default_notifier(config: WatchConfig) -> Notifier:
    if config.desktop_notify:
        return DesktopNotifier()
    return LoggingNotifier()

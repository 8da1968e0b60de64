"""Everything the watcher components share, passed around explicitly."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable

from .allowlist import AllowlistStore
from .events import Op
from .notifier import Notifier
from .source import EventSource
from .watchset import WatchSetManager


@dataclass(frozen=True)
class WatchContext:
    """Source handle, watched set, allowlist, event filter and notifier.

    Events for ``ignored`` paths (the watcher's own log file) are dropped.
    """

    source: EventSource
    watch_set: WatchSetManager
    allowlist: AllowlistStore
    events: FrozenSet[Op]
    notifier: Notifier
    ignored: FrozenSet[Path] = frozenset()

    @classmethod
    def build(
        cls,
        source: EventSource,
        allowlist: AllowlistStore,
        events: FrozenSet[Op],
        notifier: Notifier,
        ignored: Iterable[Path] = (),
    ) -> "WatchContext":
        return cls(
            source=source,
            watch_set=WatchSetManager(source.schedule),
            allowlist=allowlist,
            events=frozenset(events),
            notifier=notifier,
            ignored=frozenset(Path(path).absolute() for path in ignored),
        )

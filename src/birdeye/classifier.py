"""Matches raw events against the configured event kinds."""
from __future__ import annotations

from typing import FrozenSet, Iterable, List

from .events import OP_ORDER, Op, RawEvent


class EventClassifier:
    """Decides which events are logged and how they are described.

    Classification has no side effects; enforcement happens elsewhere and does
    not depend on the outcome.
    """

    def __init__(self, kinds: Iterable[Op]):
        self._kinds: FrozenSet[Op] = frozenset(kinds)

    @property
    def kinds(self) -> FrozenSet[Op]:
        return self._kinds

    def matches(self, event: RawEvent) -> bool:
        return event.intersects(self._kinds)

    def matched_kinds(self, event: RawEvent) -> List[Op]:
        return [op for op in OP_ORDER if op in event.ops and op in self._kinds]

    def describe(self, event: RawEvent) -> List[str]:
        """One log line per kind that is both carried and configured."""

        return [_label(op, event) for op in self.matched_kinds(event)]


def _label(op: Op, event: RawEvent) -> str:
    if op.is_relocation and event.previous_path is not None:
        return f"{op.value}: {event.previous_path} to {event.path}"
    return f"Event: {op.value} on file: {event.path}"

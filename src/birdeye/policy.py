"""Extension allowlist enforcement for newly created entries."""
from __future__ import annotations

import logging
import os
from enum import Enum

from .allowlist import AllowlistStore
from .context import WatchContext
from .events import Op, RawEvent
from .notifier import ALERT_TITLE, DeliveryError, Notifier
from .watchset import WatchSetManager

logger = logging.getLogger(__name__)


class PolicyOutcome(str, Enum):
    """What the enforcer did with a creation event."""

    SKIPPED = "skipped"
    DIRECTORY = "directory"
    ALLOWED = "allowed"
    REMOVED = "removed"
    ALREADY_ABSENT = "already_absent"
    REMOVAL_FAILED = "removal_failed"


class PolicyEnforcer:
    """Removes and reports created files whose extension is not allowed.

    Only creation events are evaluated. Files renamed or moved into the tree
    keep whatever extension they arrive with.
    """

    def __init__(self, watch_set: WatchSetManager, allowlist: AllowlistStore, notifier: Notifier):
        self._watch_set = watch_set
        self._allowlist = allowlist
        self._notifier = notifier

    @classmethod
    def from_context(cls, context: WatchContext) -> "PolicyEnforcer":
        return cls(context.watch_set, context.allowlist, context.notifier)

    def handle_create(self, event: RawEvent) -> PolicyOutcome:
        if not event.has(Op.CREATE):
            return PolicyOutcome.SKIPPED

        if event.is_directory():
            self._watch_set.add_directory(event.path)
            return PolicyOutcome.DIRECTORY

        if self._allowlist.is_allowed(event.path):
            return PolicyOutcome.ALLOWED

        logger.warning("Disallowed file extension: %s", event.path)
        return self._remove(event)

    def _remove(self, event: RawEvent) -> PolicyOutcome:
        try:
            os.remove(event.path)
        except FileNotFoundError:
            logger.debug("Disallowed file already gone: %s", event.path)
            return PolicyOutcome.ALREADY_ABSENT
        except OSError as exc:
            logger.error("Failed to handle disallowed file: could not remove %s: %s", event.path, exc)
            return PolicyOutcome.REMOVAL_FAILED

        body = f"A file with disallowed extension was created and removed: {event.path}"
        try:
            self._notifier.notify(ALERT_TITLE, body)
        except DeliveryError as exc:
            logger.error("Failed to send notification for %s: %s", event.path, exc)
        return PolicyOutcome.REMOVED

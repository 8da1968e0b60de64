"""Fire-and-forget user notifications.

Anything with a ``notify(title, body)`` method can be plugged into the policy
enforcer; delivery failures are reported as :class:`DeliveryError`.
"""
from __future__ import annotations

import logging
import subprocess
import sys
from typing import List, Protocol

logger = logging.getLogger(__name__)

ALERT_TITLE = "Disallowed File Alert"


class DeliveryError(Exception):
    """Raised when the OS notification channel is unavailable."""


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None:
        ...


class DesktopNotifier:
    """Shows a desktop notification using the platform's command-line tool."""

    def __init__(self, platform: str = sys.platform):
        self._platform = platform

    def notify(self, title: str, body: str) -> None:
        command = self._command(title, body)
        try:
            subprocess.run(command, check=True, capture_output=True)
        except FileNotFoundError as exc:
            raise DeliveryError(f"Notification command not available: {command[0]}") from exc
        except subprocess.CalledProcessError as exc:
            raise DeliveryError(
                f"Notification command failed (exit {exc.returncode}): {command[0]}"
            ) from exc

    def _command(self, title: str, body: str) -> List[str]:
        if self._platform.startswith("linux"):
            return ["notify-send", title, body]
        if self._platform == "darwin":
            script = f"display notification {_applescript_str(body)} with title {_applescript_str(title)}"
            return ["osascript", "-e", script]
        raise DeliveryError(f"Desktop notifications are not supported on {self._platform}")


class LoggingNotifier:
    """Writes notifications to the log instead of the desktop."""

    def notify(self, title: str, body: str) -> None:
        logger.warning("%s: %s", title, body)


def _applescript_str(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'

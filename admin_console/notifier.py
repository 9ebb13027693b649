"""User-facing notification sinks."""

from __future__ import annotations

import logging
from typing import Literal, Protocol

NotificationKind = Literal["success", "error"]


class Notifier(Protocol):
    def notify(self, kind: NotificationKind, message: str) -> None: ...


class LoggingNotifier:
    """Writes notifications to a logger; used when no UI is attached."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger("admin_console.notifications")

    def notify(self, kind: NotificationKind, message: str) -> None:
        if kind == "success":
            self._logger.info("%s", message)
        else:
            self._logger.warning("%s", message)

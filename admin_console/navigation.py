"""Login redirect scheduling for expired sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    def current_path(self) -> str: ...

    def redirect_to(self, path: str) -> None: ...


class InMemoryNavigator:
    """Navigator that records redirects instead of driving a real router."""

    def __init__(self, initial_path: str = "/"):
        self._path = initial_path
        self.redirects: list[str] = []

    def current_path(self) -> str:
        return self._path

    def redirect_to(self, path: str) -> None:
        self.redirects.append(path)
        self._path = path


class RedirectScheduler:
    """Arms at most one delayed redirect to the login path at a time."""

    def __init__(self, navigator: Navigator, login_path: str, delay: float):
        self._navigator = navigator
        self._login_path = login_path
        self._delay = max(0.0, delay)
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> bool:
        """Schedule the redirect. Returns True when a new one was armed."""
        if self._handle is not None:
            return False
        if self._navigator.current_path() == self._login_path:
            return False
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)
        logger.info("Login redirect scheduled in %.1fs", self._delay)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self._navigator.current_path() == self._login_path:
            return
        self._navigator.redirect_to(self._login_path)

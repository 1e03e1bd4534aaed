"""User-facing side effects: error notifications and the login redirect."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol

from .telemetry import get_logger

Sleep = Callable[[float], Awaitable[None]]


class Notifier(Protocol):
    """Shows messages to the user (toasts in a UI)."""

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class Navigator(Protocol):
    """Knows the current route and can send the user elsewhere."""

    @property
    def current_path(self) -> str: ...

    def redirect(self, path: str) -> None: ...


class LogNotifier:
    """Notifier that writes messages to the structured log."""

    def __init__(self) -> None:
        self._logger = get_logger("notifier")

    def error(self, message: str) -> None:
        self._logger.error("User notification", message=message)

    def info(self, message: str) -> None:
        self._logger.info("User notification", message=message)


class PathNavigator:
    """Navigator that only tracks the current path.

    Suitable for headless use; ``on_redirect`` lets an application hook
    its real navigation in.
    """

    def __init__(
        self,
        current_path: str = "/",
        on_redirect: Callable[[str], None] | None = None,
    ) -> None:
        self._current_path = current_path
        self._on_redirect = on_redirect
        self.redirects: list[str] = []

    @property
    def current_path(self) -> str:
        return self._current_path

    def redirect(self, path: str) -> None:
        get_logger("navigator").info("Redirecting", path=path, previous=self._current_path)
        self.redirects.append(path)
        self._current_path = path
        if self._on_redirect is not None:
            self._on_redirect(path)


async def notify_and_redirect(
    message: str,
    *,
    notifier: Notifier,
    navigator: Navigator,
    login_path: str,
    delay: float,
    sleep: Sleep = asyncio.sleep,
) -> None:
    """Show an error, give it ``delay`` seconds to render, then go to login.

    The redirect is skipped when the user is already on the login route.
    """
    notifier.error(message)
    await sleep(delay)
    if login_path not in navigator.current_path:
        navigator.redirect(login_path)

"""
Shared test fixtures for bearer-session tests.

Provides configuration, token factories and a fake backend served
through ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx
import jwt
import pytest

from bearer_session.config import SessionConfig, TelemetryConfig
from bearer_session.hooks import PathNavigator

SIGNING_KEY = "test-signing-key-0123456789abcdef-0123456789"
BASE_URL = "https://api.example.com/api"


def make_token(**claims: Any) -> str:
    """Build a signed JWT with the given claims."""
    return jwt.encode(claims, SIGNING_KEY, algorithm="HS256")


def session_token(name: str, *, exp_in: int = 3600) -> str:
    """Access token of a logged-in user (carries the ``ip`` identity claim)."""
    return make_token(ip="10.0.0.1", account=name, exp=int(time.time()) + exp_in)


def anonymous_token(name: str = "guest") -> str:
    """Access token issued by the initialize endpoint (no identity claim)."""
    return make_token(account=name, exp=int(time.time()) + 3600)


class RecordingNotifier:
    """Notifier that keeps every message."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.infos: list[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def info(self, message: str) -> None:
        self.infos.append(message)


class FakeBackend:
    """Backend that rejects stale access tokens until they are refreshed.

    Data endpoints answer 200 with ``{"path": ...}`` when called with the
    current access token and 401 otherwise. The first ``hold`` stale
    requests are held back until all of them have arrived, so they hit
    the client concurrently.
    """

    def __init__(
        self,
        *,
        valid_access: str,
        new_access: str,
        new_refresh: str | None = None,
        refresh_status: int = 200,
        hold: int = 0,
        refresh_delay: float = 0.01,
    ) -> None:
        self.valid_access = valid_access
        self.new_access = new_access
        self.new_refresh = new_refresh
        self.refresh_status = refresh_status
        self.hold = hold
        self.refresh_delay = refresh_delay
        self.requests: list[httpx.Request] = []
        self.refresh_requests: list[httpx.Request] = []
        self._held = 0
        self._all_arrived = asyncio.Event()

    @property
    def data_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r not in self.refresh_requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith(("/authorization/refreshUserToken", "/authorization/initializeToken")):
            self.refresh_requests.append(request)
            await asyncio.sleep(self.refresh_delay)
            if self.refresh_status != 200:
                return httpx.Response(
                    self.refresh_status,
                    json={"message": "refresh rejected"},
                    headers={"x-encore-trace-id": "trace-123"},
                )
            self.valid_access = self.new_access
            return httpx.Response(
                200,
                json={"data": {"access_token": self.new_access, "refresh_token": self.new_refresh}},
            )

        if request.headers.get("Authorization") == f"Bearer {self.valid_access}":
            return httpx.Response(200, json={"path": path})

        if self._held < self.hold:
            self._held += 1
            if self._held == self.hold:
                self._all_arrived.set()
            await self._all_arrived.wait()
        return httpx.Response(401, json={"message": "token expired"})


@pytest.fixture
def base_config() -> SessionConfig:
    """Provide a session configuration without redirect delay."""
    return SessionConfig(
        base_url=BASE_URL,
        redirect_delay=0,
        telemetry=TelemetryConfig(enabled=False),
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def navigator() -> PathNavigator:
    return PathNavigator(current_path="/dashboard")

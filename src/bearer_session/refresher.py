"""Single-flight token refresh.

One ``TokenRefresher`` owns the refresh state of one client. While a
refresh is in flight every other request is parked in the request queue;
when it settles the queue is replayed or rejected as a whole.

The refresh runs in a task owned by the refresher, so cancelling the
caller that started it never abandons the queue.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import TYPE_CHECKING

from .errors import SessionError, TokenRefreshError, error_from_response
from .hooks import notify_and_redirect
from .http import send_request
from .models import RequestSpec, TokenPair
from .telemetry import get_logger, trace_operation

if TYPE_CHECKING:
    import httpx

    from .config import SessionConfig
    from .hooks import Navigator, Notifier, Sleep
    from .request_queue import Replay, RequestQueue
    from .token_store import TokenStore


class RefreshState(StrEnum):
    """Refresh states."""

    IDLE = "idle"
    REFRESHING = "refreshing"


class TokenRefresher:
    """Refreshes the token pair and drains the queue afterwards."""

    def __init__(
        self,
        transport: httpx.AsyncClient,
        tokens: TokenStore,
        queue: RequestQueue,
        replay: Replay,
        *,
        config: SessionConfig,
        notifier: Notifier,
        navigator: Navigator,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the refresher.

        Args:
            transport: HTTP client the refresh endpoints are called on.
            tokens: Token store updated on success and cleared on failure.
            queue: Requests waiting for this refresh.
            replay: Sends a queued request again once tokens are fresh.
            config: Session configuration.
            notifier: Receives the failure message.
            navigator: Used for the redirect to login.
            sleep: Awaited between notification and redirect.
        """
        self._transport = transport
        self._tokens = tokens
        self._queue = queue
        self._replay = replay
        self._config = config
        self._notifier = notifier
        self._navigator = navigator
        self._sleep = sleep
        self._state = RefreshState.IDLE
        self._task: asyncio.Task[None] | None = None
        self._logger = get_logger("refresher")

    @property
    def state(self) -> RefreshState:
        """Get current refresh state."""
        return self._state

    def is_refreshing(self) -> bool:
        return self._state is RefreshState.REFRESHING

    def start(self) -> asyncio.Task[None]:
        """Start a refresh unless one is in flight, and return its task."""
        if self._task is None:
            self._state = RefreshState.REFRESHING
            self._task = asyncio.get_running_loop().create_task(self._run())
            self._task.add_done_callback(self._on_done)
        return self._task

    async def refresh(self) -> None:
        """Refresh the tokens, then replay or reject the queued requests.

        Returns immediately when a refresh is already in flight. Cancelling
        the caller leaves the refresh running.

        Raises:
            TokenRefreshError: If the refresh call fails. Tokens are cleared
                and every queued request is rejected with the same error.
        """
        if self.is_refreshing():
            return
        await asyncio.shield(self.start())

    async def cancel(self) -> None:
        """Stop an in-flight refresh; queued requests are rejected."""
        task = self._task
        if task is None:
            return
        task.cancel()
        await asyncio.wait([task])

    async def _run(self) -> None:
        try:
            with trace_operation("token_refresh"):
                pair = await self._request_tokens()
                self._tokens.update_tokens(pair.access_token, pair.refresh_token)
                self._logger.info("Token refresh succeeded", queued=len(self._queue))

                # Requests deferred while a batch replays form the next batch.
                while len(self._queue):
                    await self._queue.resolve_all(self._replay)
        except asyncio.CancelledError:
            self._logger.warning("Token refresh cancelled", queued=len(self._queue))
            self._queue.reject_all(TokenRefreshError("Token refresh cancelled"))
            raise
        except Exception as e:
            error = self._failure_error(e)
            try:
                await self._end_session(error)
            finally:
                self._queue.reject_all(error)
            raise error from e
        finally:
            self._state = RefreshState.IDLE
            self._task = None

    def _on_done(self, task: asyncio.Task[None]) -> None:
        if self._task is task:
            # Cancelled before its first step, so _run never cleaned up.
            self._task = None
            self._state = RefreshState.IDLE
            self._queue.reject_all(TokenRefreshError("Token refresh cancelled"))
        if task.cancelled():
            return
        # Queued callers already hold the TokenRefreshError; anything else came from a hook.
        error = task.exception()
        if error is not None and not isinstance(error, TokenRefreshError):
            self._logger.error("Token refresh task failed", error=repr(error))

    async def _request_tokens(self) -> TokenPair:
        """Call the refresh endpoint matching the current session."""
        access_token = self._tokens.get_access_token() or ""
        refresh_token = self._tokens.get_refresh_token() or ""
        authenticated = self._tokens.is_authenticated()
        path = self._config.refresh_path if authenticated else self._config.initialize_path

        self._logger.info("Token refresh started", path=path, authenticated=authenticated)
        response = await send_request(
            self._transport,
            RequestSpec(
                method="GET",
                url=path,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "X-Refresh-Token": f"Bearer {refresh_token}",
                },
            ),
            timeout=self._config.timeout,
        )

        if response.is_error:
            raise error_from_response(response, trace_header=self._config.trace_header)
        return TokenPair.from_body(response.json())

    def _failure_error(self, cause: Exception) -> TokenRefreshError:
        trace_id = cause.correlation_id if isinstance(cause, SessionError) else None
        status_code = cause.status_code if isinstance(cause, SessionError) else None
        self._logger.warning(
            "Token refresh failed",
            error=str(cause),
            trace_id=trace_id,
            queued=len(self._queue),
        )
        return TokenRefreshError(
            f"Failed to refresh token: {cause}",
            status_code=status_code,
            correlation_id=trace_id,
        )

    async def _end_session(self, error: TokenRefreshError) -> None:
        self._tokens.clear_tokens()
        await notify_and_redirect(
            f"Session expired, please log in again ({error.correlation_id or 'N/A'})",
            notifier=self._notifier,
            navigator=self._navigator,
            login_path=self._config.login_path,
            delay=self._config.redirect_delay,
            sleep=self._sleep,
        )

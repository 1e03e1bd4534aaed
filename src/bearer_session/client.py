"""Session client: an httpx client that keeps its bearer tokens fresh.

Callers never deal with 401s themselves. A request either resolves with a
normal response or fails with a ``SessionError``; refreshes, queueing and
replays happen in between.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Self

from .errors import UnauthenticatedError, error_from_response
from .hooks import LogNotifier, PathNavigator, notify_and_redirect
from .http import create_async_http_client, send_request
from .models import RequestSpec
from .pipeline import InterceptorPipeline, RequestDecision, ResponseDecision
from .refresher import TokenRefresher
from .request_queue import RequestQueue
from .telemetry import get_logger
from .token_store import TokenStore

if TYPE_CHECKING:
    import httpx

    from .config import SessionConfig
    from .hooks import Navigator, Notifier, Sleep
    from .storage import KeyValueStore


class SessionClient:
    """Asynchronous HTTP client with transparent token refresh."""

    def __init__(
        self,
        config: SessionConfig,
        *,
        store: KeyValueStore | None = None,
        notifier: Notifier | None = None,
        navigator: Navigator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            config: Session configuration.
            store: Token persistence; in-memory when omitted.
            notifier: Receives user-facing error messages.
            navigator: Performs the redirect to the login route.
            transport: httpx transport, e.g. ``httpx.MockTransport``.
            sleep: Awaited before redirecting, so a notification can render.
        """
        self.config = config
        self._http = create_async_http_client(config, transport=transport)
        self._tokens = TokenStore(
            store,
            identity_claim=config.identity_claim,
            access_key=config.access_token_key,
            refresh_key=config.refresh_token_key,
        )
        self._queue = RequestQueue()
        self._notifier: Notifier = notifier or LogNotifier()
        self._navigator: Navigator = navigator or PathNavigator()
        self._sleep = sleep
        self._refresher = TokenRefresher(
            self._http,
            self._tokens,
            self._queue,
            self.send,
            config=config,
            notifier=self._notifier,
            navigator=self._navigator,
            sleep=sleep,
        )
        self._pipeline = InterceptorPipeline(self._tokens, self._refresher)
        self._ending_session = False
        self._logger = get_logger("client")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop any refresh in flight and close the HTTP client."""
        await self._refresher.cancel()
        await self._http.aclose()

    @property
    def tokens(self) -> TokenStore:
        return self._tokens

    @property
    def queue(self) -> RequestQueue:
        return self._queue

    @property
    def refresher(self) -> TokenRefresher:
        return self._refresher

    def login(self, access_token: str, refresh_token: str | None = None) -> None:
        """Start a session with tokens obtained elsewhere."""
        self._tokens.update_tokens(access_token, refresh_token)

    def logout(self) -> None:
        """End the session; anything still queued fails."""
        self._tokens.clear_tokens()
        self._queue.reject_all(UnauthenticatedError("Logged out"))

    async def refresh(self) -> None:
        """Refresh tokens now. Returns at once while a refresh is in flight."""
        await self._refresher.refresh()

    async def send(self, request: RequestSpec) -> httpx.Response:
        """Send a request through the interceptors.

        Args:
            request: Request description.

        Returns:
            Successful (2xx) HTTP response.

        Raises:
            UnauthorizedError: On a 401 that cannot be recovered.
            TokenRefreshError: If the refresh this request waited for failed.
            RequestError: On other non-2xx statuses.
            NetworkError: On transport failure.
        """
        if self._pipeline.before_request(request) is RequestDecision.DEFER:
            self._logger.debug(
                "Refresh in progress, deferring request",
                method=request.method,
                url=request.url,
            )
            return await self._queue.enqueue(request)

        response = await send_request(
            self._http, self._pipeline.authorize(request), timeout=self.config.timeout
        )
        decision = self._pipeline.after_response(request, response)

        if decision is ResponseDecision.PASS:
            return response
        if decision is ResponseDecision.ENQUEUE:
            return await self._enqueue_and_refresh(request)
        if decision is ResponseDecision.UNRECOVERABLE:
            await self._end_session()
        raise error_from_response(response, trace_header=self.config.trace_header)

    async def _enqueue_and_refresh(self, request: RequestSpec) -> httpx.Response:
        future = self._queue.enqueue(request)
        # Only the first caller actually starts one; the rest join it.
        self._refresher.start()
        return await future

    async def _end_session(self) -> None:
        """Handle a 401 without a session behind it.

        Callers of the same burst share one notification and redirect.
        """
        message = "Please log in to obtain full access"
        self._logger.warning("Unauthorized without a session", queued=len(self._queue))
        self._tokens.clear_tokens()
        self._queue.reject_all(UnauthenticatedError(message))
        if self._ending_session:
            return
        self._ending_session = True
        try:
            await notify_and_redirect(
                message,
                notifier=self._notifier,
                navigator=self._navigator,
                login_path=self.config.login_path,
                delay=self.config.redirect_delay,
                sleep=self._sleep,
            )
        finally:
            self._ending_session = False

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and return its decoded JSON body.

        Returns None for an empty body.
        """
        response = await self.send(
            RequestSpec(
                method=method.upper(),
                url=url,
                headers=headers or {},
                params=params,
                json=json,
                content=content,
            )
        )
        if not response.content:
            return None
        return response.json()

    async def get(self, url: str, **kwargs: Any) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Any:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Any:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Any:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", url, **kwargs)

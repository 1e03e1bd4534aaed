"""Request/response interception as an explicit decision table.

``before_request`` and ``after_response`` only decide; ``SessionClient``
carries the decisions out. Keeping the two apart makes every branch
testable without a transport.

Response decisions:

=================  ==========================================
Status / state     Decision
=================  ==========================================
2xx                PASS
401, retry         RETRY_FORBIDDEN
401, logged out    UNRECOVERABLE
401, logged in     ENQUEUE
anything else      FAIL
=================  ==========================================
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from .models import RequestSpec
    from .refresher import TokenRefresher
    from .token_store import TokenStore


class RequestDecision(StrEnum):
    """Outcome of the request phase."""

    PROCEED = "proceed"
    # Refresh in flight: park the request instead of sending it.
    DEFER = "defer"


class ResponseDecision(StrEnum):
    """Outcome of the response phase."""

    PASS = "pass"
    FAIL = "fail"
    ENQUEUE = "enqueue"
    RETRY_FORBIDDEN = "retry_forbidden"
    UNRECOVERABLE = "unrecoverable"


class InterceptorPipeline:
    """Decides what happens to each request and response."""

    def __init__(self, tokens: TokenStore, refresher: TokenRefresher) -> None:
        self._tokens = tokens
        self._refresher = refresher

    def before_request(self, request: RequestSpec) -> RequestDecision:
        if self._refresher.is_refreshing() and not request.is_retry:
            return RequestDecision.DEFER
        return RequestDecision.PROCEED

    def authorize(self, request: RequestSpec) -> RequestSpec:
        """Attach the current access token, if there is one."""
        access_token = self._tokens.get_access_token()
        if not access_token:
            return request
        return request.with_header("Authorization", f"Bearer {access_token}")

    def after_response(
        self, request: RequestSpec, response: httpx.Response
    ) -> ResponseDecision:
        if response.is_success:
            return ResponseDecision.PASS
        if response.status_code != 401:
            return ResponseDecision.FAIL
        if request.is_retry:
            return ResponseDecision.RETRY_FORBIDDEN
        if not self._tokens.is_authenticated():
            return ResponseDecision.UNRECOVERABLE
        return ResponseDecision.ENQUEUE

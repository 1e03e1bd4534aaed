"""HTTP transport utilities for bearer-session.

One shared ``httpx.AsyncClient`` carries both ordinary requests and the
refresh calls. Transport failures are mapped onto the package's error
hierarchy here and nowhere else.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from .errors import NetworkError, TimeoutError
from .telemetry import trace_operation

if TYPE_CHECKING:
    from .config import SessionConfig
    from .models import RequestSpec


def create_async_http_client(
    config: SessionConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create configured async HTTP client.

    Args:
        config: Session configuration.
        transport: Optional transport, e.g. ``httpx.MockTransport`` in tests.

    Returns:
        Configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(
        base_url=config.base_url_str,
        timeout=httpx.Timeout(config.timeout),
        headers={
            "User-Agent": "bearer-session/0.1.0 Python",
            "Accept": "application/json",
            **config.headers,
        },
        follow_redirects=False,
        transport=transport,
    )


async def send_request(
    client: httpx.AsyncClient,
    request: RequestSpec,
    *,
    timeout: float | None = None,
) -> httpx.Response:
    """Send a request once, without any retry.

    Args:
        client: Async HTTP client.
        request: Request description.
        timeout: Configured timeout, reported on TimeoutError.

    Returns:
        HTTP response, whatever its status.

    Raises:
        TimeoutError: If the transport timed out.
        NetworkError: On any other transport failure.
    """
    with trace_operation(
        "http_request",
        attributes={
            "http.method": request.method,
            "http.url": request.url,
            "retry": request.is_retry,
        },
    ):
        try:
            return await client.request(
                request.method, request.url, **request.to_httpx_kwargs()
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(str(e) or "Request timed out", timeout_seconds=timeout) from e
        except httpx.HTTPError as e:
            raise NetworkError(str(e) or "Network request failed", cause=e) from e

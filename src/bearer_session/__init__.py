"""bearer-session: async HTTP client with single-flight token refresh."""

from .client import SessionClient
from .config import SessionConfig, TelemetryConfig
from .errors import (
    ErrorCode,
    NetworkError,
    RequestError,
    ServerError,
    SessionError,
    TimeoutError,
    TokenInvalidError,
    TokenRefreshError,
    UnauthenticatedError,
    UnauthorizedError,
)
from .hooks import LogNotifier, Navigator, Notifier, PathNavigator
from .models import RequestSpec, TokenClaims, TokenPair
from .refresher import RefreshState, TokenRefresher
from .request_queue import QueuedRequest, RequestQueue
from .storage import FileStore, KeyValueStore, MemoryStore
from .telemetry import configure_telemetry
from .token_store import TokenStore

__all__ = [
    "SessionClient",
    "SessionConfig",
    "TelemetryConfig",
    "ErrorCode",
    "NetworkError",
    "RequestError",
    "ServerError",
    "SessionError",
    "TimeoutError",
    "TokenInvalidError",
    "TokenRefreshError",
    "UnauthenticatedError",
    "UnauthorizedError",
    "LogNotifier",
    "Navigator",
    "Notifier",
    "PathNavigator",
    "RequestSpec",
    "TokenClaims",
    "TokenPair",
    "RefreshState",
    "TokenRefresher",
    "QueuedRequest",
    "RequestQueue",
    "FileStore",
    "KeyValueStore",
    "MemoryStore",
    "configure_telemetry",
    "TokenStore",
]

__version__ = "0.1.0"

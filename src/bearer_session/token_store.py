"""Access/refresh token storage."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .claims import get_claim
from .storage import MemoryStore

if TYPE_CHECKING:
    from .storage import KeyValueStore


class TokenStore:
    """Holds the token pair in a key/value store.

    Absence is a valid state: getters return None and nothing raises for a
    missing token.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        *,
        identity_claim: str = "ip",
        access_key: str = "access_token",
        refresh_key: str = "refresh_token",
    ) -> None:
        self._store: KeyValueStore = store if store is not None else MemoryStore()
        self.identity_claim = identity_claim
        self._access_key = access_key
        self._refresh_key = refresh_key

    def get_access_token(self) -> str | None:
        return self._store.get(self._access_key) or None

    def get_refresh_token(self) -> str | None:
        return self._store.get(self._refresh_key) or None

    def is_authenticated(self) -> bool:
        """True if the access token carries the identity claim.

        Expiry is not checked here; the server enforces it with a 401.
        """
        return bool(get_claim(self.get_access_token(), self.identity_claim))

    def set_access_token(self, token: str) -> None:
        self._store.set(self._access_key, token)

    def set_refresh_token(self, token: str) -> None:
        """Store the refresh token, expiring together with its ``exp`` claim."""
        exp = get_claim(token, "exp")
        expires_at = None
        if isinstance(exp, int | float) and exp > 0:
            expires_at = datetime.fromtimestamp(exp, tz=UTC)
        self._store.set(self._refresh_key, token, expires_at=expires_at)

    def update_tokens(self, access_token: str, refresh_token: str | None = None) -> None:
        self.set_access_token(access_token)
        if refresh_token:
            self.set_refresh_token(refresh_token)

    def clear_tokens(self) -> None:
        self._store.delete(self._access_key)
        self._store.delete(self._refresh_key)

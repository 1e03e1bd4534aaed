"""Pydantic models for bearer-session.

Frozen models: a token or request description is replaced, never mutated.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field


class TokenClaims(BaseModel):
    """Decoded access/refresh token payload."""

    model_config = ConfigDict(frozen=True, extra="allow")

    account: str | None = None
    exp: int | None = Field(default=None, description="Expiration time (Unix timestamp)")
    iat: int | None = Field(default=None, description="Issued at time (Unix timestamp)")
    id: str | None = None
    identity: str | None = None
    ip: str | None = None
    user_id: str | None = None

    @property
    def expires_at(self) -> datetime | None:
        """Get expiration as datetime."""
        if self.exp is None:
            return None
        return datetime.fromtimestamp(self.exp, tz=UTC)

    def get(self, key: str) -> Any:
        """Get a claim by name, including extra claims."""
        if key in type(self).model_fields:
            return getattr(self, key)
        return (self.model_extra or {}).get(key)


class JwtInfo(BaseModel):
    """Summary of a token's payload and expiry."""

    model_config = ConfigDict(frozen=True)

    payload: TokenClaims
    is_expired: bool
    remaining_time: float
    is_valid: bool


class TokenPair(BaseModel):
    """Tokens issued by the refresh and initialize endpoints."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None

    @classmethod
    def from_body(cls, body: Any) -> Self:
        """Parse the ``{"data": {...}}`` envelope of a refresh response."""
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]
        return cls.model_validate(body)


class RequestSpec(BaseModel):
    """Description of an outgoing request, replayable by the queue."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    method: str = "GET"
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, Any] | None = None
    json_body: Any = Field(default=None, alias="json")
    content: bytes | None = None
    is_retry: bool = False

    def as_retry(self) -> Self:
        """Copy of this request marked as a replay."""
        return self.model_copy(update={"is_retry": True})

    def with_header(self, name: str, value: str) -> Self:
        """Copy of this request with one header set.

        Header names are case-insensitive; any existing spelling of ``name``
        is replaced.
        """
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        headers[name] = value
        return self.model_copy(update={"headers": headers})

    def to_httpx_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``httpx.AsyncClient.build_request``."""
        kwargs: dict[str, Any] = {"headers": self.headers}
        if self.params is not None:
            kwargs["params"] = self.params
        if self.json_body is not None:
            kwargs["json"] = self.json_body
        if self.content is not None:
            kwargs["content"] = self.content
        return kwargs

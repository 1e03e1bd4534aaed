"""JWT claim helpers.

Tokens are decoded without signature verification: the client only reads
claims, the server is the one enforcing them.
"""

from __future__ import annotations

import math
import time
from typing import Any

import jwt
from pydantic import ValidationError

from .errors import TokenInvalidError
from .models import JwtInfo, TokenClaims


def decode_payload(token: str) -> dict[str, Any]:
    """Decode a JWT payload without verifying it.

    Raises:
        TokenInvalidError: If the token is empty or malformed.
    """
    if not token or not isinstance(token, str):
        raise TokenInvalidError("Invalid JWT token: token must be a non-empty string")

    try:
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=None,
        )
    except jwt.exceptions.InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid JWT token: {e}") from e

    if not isinstance(payload, dict):
        raise TokenInvalidError("Invalid JWT token: payload is not an object")
    return payload


def parse_jwt(token: str) -> TokenClaims:
    """Decode a JWT into typed claims.

    Raises:
        TokenInvalidError: If the token is empty, malformed, or its claims
            have unexpected types.
    """
    payload = decode_payload(token)
    try:
        return TokenClaims.model_validate(payload)
    except ValidationError as e:
        raise TokenInvalidError(
            "Invalid JWT token: unexpected claim types",
            details={"errors": e.errors(include_url=False)},
        ) from e


def get_claim(token: str | None, key: str) -> Any:
    """Get one claim from a token, or None if absent or undecodable."""
    if not token:
        return None
    try:
        return decode_payload(token).get(key)
    except TokenInvalidError:
        return None


def _check_buffer(buffer_seconds: float) -> None:
    if buffer_seconds < 0:
        msg = "buffer_seconds must be a non-negative number"
        raise ValueError(msg)


def is_jwt_expired(token: str, buffer_seconds: float = 0) -> bool:
    """Check whether a token is expired.

    A token without ``exp`` never expires; an undecodable token counts as
    expired.
    """
    _check_buffer(buffer_seconds)
    try:
        claims = parse_jwt(token)
    except TokenInvalidError:
        return True

    if not claims.exp:
        return False
    return claims.exp < int(time.time()) + buffer_seconds


def is_jwt_valid(token: str | None, buffer_seconds: float = 0) -> bool:
    """Check whether a token decodes and is not expired."""
    if not token:
        return False
    _check_buffer(buffer_seconds)
    try:
        claims = parse_jwt(token)
    except TokenInvalidError:
        return False

    if not claims.exp:
        return True
    return claims.exp >= int(time.time()) + buffer_seconds


def get_jwt_remaining_time(token: str) -> float:
    """Seconds until expiry; 0 if expired or undecodable, inf without ``exp``."""
    try:
        claims = parse_jwt(token)
    except TokenInvalidError:
        return 0

    if not claims.exp:
        return math.inf
    return max(claims.exp - int(time.time()), 0)


def get_jwt_info(token: str) -> JwtInfo | None:
    """Decode a token once and summarize it, or None if undecodable."""
    try:
        claims = parse_jwt(token)
    except TokenInvalidError:
        return None

    is_expired = False
    remaining: float = math.inf
    if claims.exp:
        remaining = claims.exp - int(time.time())
        is_expired = remaining <= 0
        remaining = max(remaining, 0)

    return JwtInfo(
        payload=claims,
        is_expired=is_expired,
        remaining_time=remaining,
        is_valid=not is_expired,
    )

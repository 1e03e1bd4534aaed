"""Configuration for bearer-session.

Uses Pydantic v2 frozen models with defaults matching the backend the
client was built against.
"""

from __future__ import annotations

from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

# One day. The transport timeout is the only bound on a hanging refresh call.
DEFAULT_TIMEOUT = 24 * 60 * 60.0


class TelemetryConfig(BaseModel):
    """Logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "bearer-session"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unsupported log level: {v}"
            raise ValueError(msg)
        return level


class SessionConfig(BaseModel):
    """Main configuration for the session client."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    # Required
    base_url: str = Field(..., min_length=1)

    # HTTP settings
    timeout: Annotated[float, Field(gt=0)] = DEFAULT_TIMEOUT
    headers: dict[str, str] = Field(
        default_factory=lambda: {"Content-Type": "application/json;charset=UTF-8"}
    )

    # Refresh endpoints
    refresh_path: str = "/authorization/refreshUserToken"
    initialize_path: str = "/authorization/initializeToken"

    # Side effects
    login_path: str = "/login"
    redirect_delay: Annotated[float, Field(ge=0)] = 1.0

    # Token handling
    identity_claim: str = Field(default="ip", min_length=1)
    trace_header: str = "x-encore-trace-id"
    access_token_key: str = "access_token"
    refresh_token_key: str = "refresh_token"

    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @field_validator("refresh_path", "initialize_path", "login_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Paths are absolute relative to the base URL."""
        if not v.startswith("/"):
            msg = f"Path must start with '/': {v}"
            raise ValueError(msg)
        return v

    @property
    def base_url_str(self) -> str:
        """Get base URL as string without trailing slash."""
        return self.base_url.rstrip("/")

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "BEARER_SESSION_") -> Self:
        """Create config from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        base_url = get_env("BASE_URL")
        if not base_url:
            msg = f"{prefix}BASE_URL environment variable is required"
            raise ValueError(msg)

        overrides: dict[str, Any] = {}
        for key in (
            "refresh_path",
            "initialize_path",
            "login_path",
            "identity_claim",
            "trace_header",
        ):
            value = get_env(key.upper())
            if value:
                overrides[key] = value

        return cls(
            base_url=base_url,
            timeout=float(get_env("TIMEOUT", str(DEFAULT_TIMEOUT))),
            redirect_delay=float(get_env("REDIRECT_DELAY", "1.0")),
            telemetry=TelemetryConfig(log_level=get_env("LOG_LEVEL", "INFO")),
            **overrides,
        )

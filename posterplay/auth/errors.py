"""Authentication errors and stable error code constants.

The codes are what clients branch on; messages are for humans and must never
carry secret material or raw provider responses.
"""

from __future__ import annotations

# Configuration
ERR_NOT_CONFIGURED = "not_configured"

# Provider token exchange / refresh
ERR_TOKEN_EXCHANGE_FAILED = "token_exchange_failed"

# Client input
ERR_INVALID = "invalid"
ERR_INVALID_ORIGIN = "invalid_origin"

# Rate limiting
ERR_TOO_MANY = "too_many_requests"

# Client-side session controller
ERR_AUTHORIZATION_FAILED = "authorization_failed"
ERR_PLATFORM_UNAVAILABLE = "platform_unavailable"

# OAuth redirect flow (sent back as ?error=<code>)
ERR_MISSING_CODE = "missing_code"
ERR_INVALID_STATE = "invalid_state"
ERR_AUTH_FAILED = "auth_failed"


class AuthError(Exception):
    """Base class for every error raised by the auth core."""

    code = "auth_error"

    def __init__(self, message: str = "", *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ConfigurationError(AuthError):
    """Required secret material is missing or unusable.

    ``missing`` names the offending settings for server logs only; handlers
    answer with a generic "not configured" message.
    """

    code = ERR_NOT_CONFIGURED

    def __init__(self, message: str, *, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing = missing


class TokenExchangeError(AuthError):
    """The provider rejected a code or refresh grant, or answered unusably."""

    code = ERR_TOKEN_EXCHANGE_FAILED

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ValidationError(AuthError):
    """Malformed client input; the message is safe to show to the client."""

    code = ERR_INVALID


class RateLimitExceeded(AuthError):
    code = ERR_TOO_MANY

    def __init__(
        self,
        message: str,
        *,
        retry_after: int,
        limit: int,
        reset_at: float,
    ) -> None:
        super().__init__(message)
        self.retry_after = retry_after
        self.limit = limit
        self.reset_at = reset_at


class AuthorizationError(AuthError):
    """The user denied access or the platform returned no usable token."""

    code = ERR_AUTHORIZATION_FAILED


class PlatformUnavailableError(AuthError):
    """The platform SDK is not loaded (yet) on this client."""

    code = ERR_PLATFORM_UNAVAILABLE


__all__ = [
    "AuthError",
    "AuthorizationError",
    "ConfigurationError",
    "PlatformUnavailableError",
    "RateLimitExceeded",
    "TokenExchangeError",
    "ValidationError",
]

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any
from urllib.parse import urlencode

import httpx

from ...auth.errors import ConfigurationError, TokenExchangeError
from ...auth.models import Platform, TokenBundle, UserIdentity
from ...config import AuthSettings
from ...http_client import build_async_httpx_client
from .config import API_BASE, AUTHORIZE_URL, TOKEN_URL, get_spotify_scopes, missing_credentials

logger = logging.getLogger(__name__)

# Provider bodies are logged for diagnosis, never returned to clients
_BODY_LOG_LIMIT = 200


def log_spotify_oauth(operation: str, details: dict | None = None, level: int = logging.INFO) -> None:
    logger.log(
        level,
        "spotify_oauth.%s",
        operation,
        extra={"meta": {"component": "spotify_oauth", "operation": operation, **(details or {})}},
    )


def _ttl_is_usable(value: Any) -> bool:
    # Absent means the default lifetime applies
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    try:
        return int(value) > 0
    except (TypeError, ValueError):
        return False


class ProviderErrorKind(str, Enum):
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    NETWORK = "network"


class ProviderRequestError(Exception):
    """A Spotify Web API call failed; ``kind`` says how."""

    def __init__(self, kind: ProviderErrorKind, status: int | None = None) -> None:
        super().__init__(f"spotify request failed: {kind.value} ({status})")
        self.kind = kind
        self.status = status

    @classmethod
    def from_status(cls, status: int) -> "ProviderRequestError":
        kind = ProviderErrorKind.CLIENT_ERROR if status < 500 else ProviderErrorKind.SERVER_ERROR
        return cls(kind, status)


class SpotifyOAuth:
    """Spotify OAuth 2.0 authorization-code flow.

    Token exchange and refresh are at-most-once: a failed or ambiguous call is
    reported, never retried here, since a partial success may already have
    rotated the refresh token.
    """

    def __init__(
        self, settings: AuthSettings, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self.client_id = settings.spotify_client_id
        self.client_secret = settings.spotify_client_secret
        self.redirect_uri = settings.spotify_redirect_uri
        self.scopes = " ".join(get_spotify_scopes(settings))
        self._missing = missing_credentials(settings)
        self._http = http_client

    def _require_config(self) -> None:
        if self._missing:
            raise ConfigurationError("Spotify is not configured", missing=self._missing)

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http is not None:
            yield self._http
            return
        async with build_async_httpx_client() as client:
            yield client

    def authorize_url(self, state: str) -> str:
        self._require_config()
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "scope": self.scopes,
            "redirect_uri": self.redirect_uri,
            "state": state,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code_for_tokens(self, code: str) -> TokenBundle:
        """Exchange an authorization code for an access/refresh pair."""
        self._require_config()
        log_spotify_oauth("exchange_code_start", {"code_length": len(code or "")})
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        payload = await self._token_request(data, operation="exchange_code")
        bundle = TokenBundle.from_token_response(payload)
        log_spotify_oauth(
            "exchange_code_success",
            {"expires_in": bundle.expires_in, "has_refresh_token": bool(bundle.refresh_token)},
        )
        return bundle

    async def refresh_access_token(self, refresh_token: str) -> TokenBundle:
        """Refresh an access token using the refresh token."""
        self._require_config()
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        payload = await self._token_request(data, operation="refresh")
        # Spotify may not return a new refresh token
        bundle = TokenBundle.from_token_response(payload, fallback_refresh_token=refresh_token)
        log_spotify_oauth(
            "refresh_success",
            {
                "expires_in": bundle.expires_in,
                "rotated": bundle.refresh_token != refresh_token,
            },
        )
        return bundle

    async def _token_request(self, data: dict[str, str], *, operation: str) -> dict[str, Any]:
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        try:
            async with self._client() as client:
                response = await client.post(TOKEN_URL, data=data, headers=headers)
        except httpx.HTTPError as e:
            log_spotify_oauth(
                f"{operation}_network_error", {"error_type": type(e).__name__}, logging.ERROR
            )
            raise TokenExchangeError(f"Token {operation} failed: network error") from e

        if response.status_code != 200:
            log_spotify_oauth(
                f"{operation}_rejected",
                {"status": response.status_code, "body": response.text[:_BODY_LOG_LIMIT]},
                logging.WARNING,
            )
            raise TokenExchangeError(
                f"Token {operation} failed: {response.status_code}",
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            log_spotify_oauth(f"{operation}_malformed", {"reason": "non_json"}, logging.ERROR)
            raise TokenExchangeError(
                f"Token {operation} failed: malformed response", status=response.status_code
            ) from e

        if not isinstance(payload, dict) or not payload.get("access_token"):
            log_spotify_oauth(f"{operation}_malformed", {"reason": "no_access_token"}, logging.ERROR)
            raise TokenExchangeError(
                f"Token {operation} failed: malformed response", status=response.status_code
            )
        if not _ttl_is_usable(payload.get("expires_in")):
            log_spotify_oauth(f"{operation}_malformed", {"reason": "bad_expires_in"}, logging.ERROR)
            raise TokenExchangeError(
                f"Token {operation} failed: malformed response", status=response.status_code
            )
        return payload

    async def get_current_user(self, access_token: str) -> UserIdentity:
        """Fetch the signed-in user's profile from ``/v1/me``."""
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{API_BASE}/me", headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.HTTPError as e:
            logger.warning(
                "spotify.me.network_error", extra={"meta": {"error_type": type(e).__name__}}
            )
            raise ProviderRequestError(ProviderErrorKind.NETWORK) from e

        if response.status_code >= 400:
            logger.info(
                "spotify.me.failed",
                extra={
                    "meta": {
                        "status": response.status_code,
                        "body": response.text[:_BODY_LOG_LIMIT],
                    }
                },
            )
            raise ProviderRequestError.from_status(response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderRequestError(ProviderErrorKind.SERVER_ERROR, response.status_code) from e
        if not isinstance(data, dict) or not data.get("id"):
            raise ProviderRequestError(ProviderErrorKind.SERVER_ERROR, response.status_code)

        return UserIdentity(
            id=str(data["id"]),
            display_name=str(data.get("display_name") or data["id"]),
            platform=Platform.SPOTIFY,
            email=data.get("email"),
        )

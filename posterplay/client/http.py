"""Typed HTTP collaborator for the session controller.

Every failure surfaces as :class:`SessionRequestError` with a closed
:class:`RequestErrorKind`, so callers branch on the kind instead of poking at
response shapes.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import httpx

from ..auth.models import UserIdentity

logger = logging.getLogger(__name__)

AUTH_BASE = "/api/auth"


class RequestErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    NETWORK = "network"


class SessionRequestError(Exception):
    def __init__(
        self, kind: RequestErrorKind, status: int | None = None, message: str = ""
    ) -> None:
        super().__init__(message or f"{kind.value} ({status})")
        self.kind = kind
        self.status = status
        self.message = message

    @classmethod
    def from_status(cls, status: int, message: str = "") -> "SessionRequestError":
        if status == 401:
            kind = RequestErrorKind.UNAUTHENTICATED
        elif status < 500:
            kind = RequestErrorKind.CLIENT_ERROR
        else:
            kind = RequestErrorKind.SERVER_ERROR
        return cls(kind, status, message)


class SessionApi:
    """Thin wrapper over the auth endpoints; holds no session state."""

    def __init__(self, client: httpx.AsyncClient, *, base_path: str = AUTH_BASE) -> None:
        self._client = client
        self._base = base_path.rstrip("/")

    def url(self, path: str) -> str:
        return str(self._client.base_url.join(f"{self._base}{path}"))

    def spotify_login_url(self) -> str:
        return self.url("/spotify/login")

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, f"{self._base}{path}", **kwargs)
        except httpx.HTTPError as e:
            raise SessionRequestError(RequestErrorKind.NETWORK, message=str(e)) from e

        if response.status_code >= 400:
            raise SessionRequestError.from_status(
                response.status_code, _error_message(response)
            )
        try:
            data = response.json()
        except ValueError as e:
            raise SessionRequestError(
                RequestErrorKind.SERVER_ERROR, response.status_code, "malformed response"
            ) from e
        if not isinstance(data, dict):
            raise SessionRequestError(
                RequestErrorKind.SERVER_ERROR, response.status_code, "malformed response"
            )
        return data

    async def get_session(self) -> UserIdentity:
        data = await self._request("GET", "/me")
        try:
            return UserIdentity.from_payload(data)
        except (KeyError, TypeError) as e:
            raise SessionRequestError(
                RequestErrorKind.SERVER_ERROR, 200, "malformed session payload"
            ) from e

    async def logout(self) -> None:
        await self._request("POST", "/logout")

    async def store_apple_music_token(self, music_user_token: str) -> None:
        await self._request(
            "POST",
            "/apple-music/store-token",
            json={"musicUserToken": music_user_token},
        )

    async def get_developer_token(self) -> str:
        data = await self._request("GET", "/apple-music/developer-token")
        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise SessionRequestError(
                RequestErrorKind.SERVER_ERROR, 200, "developer token missing"
            )
        return token


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return ""

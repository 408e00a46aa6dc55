"""Authentication models shared by the server and the session controller."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    SPOTIFY = "spotify"
    APPLE_MUSIC = "apple-music"

    @classmethod
    def parse(cls, value: str | None) -> "Platform | None":
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class UserIdentity:
    id: str
    display_name: str
    platform: Platform
    email: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "UserIdentity":
        """Build from a ``/api/auth/me`` body (camelCase or legacy snake_case)."""
        platform = Platform.parse(data.get("platform")) or Platform.SPOTIFY
        display_name = data.get("displayName") or data.get("display_name") or ""
        return cls(
            id=str(data["id"]),
            display_name=str(display_name),
            platform=platform,
            email=data.get("email"),
        )


@dataclass(frozen=True)
class TokenBundle:
    """Spotify access/refresh pair.

    ``expires_at`` is always ``issued_at + expires_in`` as computed here from
    the provider-reported TTL.
    """

    access_token: str
    refresh_token: str | None
    expires_in: int
    expires_at: int
    scope: str | None = None

    @classmethod
    def from_token_response(
        cls,
        data: dict[str, Any],
        *,
        issued_at: float | None = None,
        fallback_refresh_token: str | None = None,
    ) -> "TokenBundle":
        now = int(issued_at if issued_at is not None else time.time())
        expires_in = int(data.get("expires_in") or 3600)
        return cls(
            access_token=str(data["access_token"]),
            # Spotify may not return a new refresh token on refresh grants
            refresh_token=data.get("refresh_token") or fallback_refresh_token,
            expires_in=expires_in,
            expires_at=now + expires_in,
            scope=data.get("scope"),
        )


class MeOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    display_name_camel: str = Field(alias="displayName")
    # Legacy field kept for older clients
    display_name: str
    email: str | None = None
    platform: Platform

    @classmethod
    def from_identity(cls, user: UserIdentity) -> "MeOut":
        return cls(
            id=user.id,
            displayName=user.display_name,
            display_name=user.display_name,
            email=user.email,
            platform=user.platform,
        )


class DeveloperTokenOut(BaseModel):
    token: str


class SuccessOut(BaseModel):
    success: bool = True

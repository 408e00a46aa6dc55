"""Apple Music token codec.

Developer tokens are ES256 JWTs signed with the team's MusicKit key; they
initialize MusicKit on the client and authorize server-side API calls. User
tokens are opaque strings minted by MusicKit in the browser and are only
shape-checked here.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from typing import Any

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ...auth.errors import ConfigurationError
from ...config import AuthSettings

logger = logging.getLogger(__name__)

ALGORITHM = "ES256"
TOKEN_LIFETIME_SECONDS = 60 * 60 * 24 * 30  # 30 days
# Reissue a cached token once less than this much validity remains
REFRESH_BUFFER_SECONDS = 5 * 60

_USER_TOKEN_MIN_LENGTH = 100
_USER_TOKEN_RE = re.compile(r"[A-Za-z0-9+/=]+")


def _missing_settings(settings: AuthSettings) -> tuple[str, ...]:
    missing = []
    if not settings.apple_music_team_id:
        missing.append("APPLE_MUSIC_TEAM_ID")
    if not settings.apple_music_key_id:
        missing.append("APPLE_MUSIC_KEY_ID")
    if not settings.apple_music_private_key:
        missing.append("APPLE_MUSIC_PRIVATE_KEY")
    return tuple(missing)


def _load_signing_key(pem: str) -> ec.EllipticCurvePrivateKey:
    # Keys pasted into env files usually arrive with literal "\n" sequences
    material = pem.replace("\\n", "\n").strip().encode("utf-8")
    try:
        key = serialization.load_pem_private_key(material, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ConfigurationError(
            "Apple Music private key could not be loaded",
            missing=("APPLE_MUSIC_PRIVATE_KEY",),
        ) from e
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise ConfigurationError(
            "Apple Music private key is not an EC key",
            missing=("APPLE_MUSIC_PRIVATE_KEY",),
        )
    return key


def generate_developer_token(
    settings: AuthSettings, *, now: float | None = None
) -> str:
    """Sign a developer token valid for 30 days from ``now``.

    Raises :class:`ConfigurationError` when the team id, key id or private key
    is missing or unusable. The missing names are for server logs only.
    """
    missing = _missing_settings(settings)
    if missing:
        raise ConfigurationError("Apple Music is not configured", missing=missing)

    key = _load_signing_key(settings.apple_music_private_key)
    issued_at = int(now if now is not None else time.time())
    payload: dict[str, Any] = {
        "iss": settings.apple_music_team_id,
        "iat": issued_at,
        "exp": issued_at + TOKEN_LIFETIME_SECONDS,
    }
    headers = {"kid": settings.apple_music_key_id}
    return jwt.encode(payload, key, algorithm=ALGORITHM, headers=headers)


def decode_developer_token(
    token: str, public_key: Any, *, leeway: float = 0
) -> dict[str, Any]:
    """Verify signature, algorithm and expiry; return the claims.

    Raises ``jwt.PyJWTError`` subclasses on any verification failure.
    """
    return jwt.decode(
        token,
        public_key,
        algorithms=[ALGORITHM],
        options={"require": ["iss", "iat", "exp"]},
        leeway=leeway,
    )


class DeveloperTokenCache:
    """Hand out one signed token until it is close to expiry."""

    def __init__(
        self,
        settings: AuthSettings,
        *,
        clock: Callable[[], float] = time.time,
        refresh_buffer: float = REFRESH_BUFFER_SECONDS,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._refresh_buffer = refresh_buffer
        self._token: str | None = None
        self._expires_at: float = 0.0

    def get(self) -> str:
        now = self._clock()
        if self._token and self._expires_at - now > self._refresh_buffer:
            return self._token

        token = generate_developer_token(self._settings, now=now)
        self._token = token
        self._expires_at = int(now) + TOKEN_LIFETIME_SECONDS
        logger.info(
            "apple_music.developer_token.issued",
            extra={"meta": {"expires_at": self._expires_at}},
        )
        return token

    def clear(self) -> None:
        self._token = None
        self._expires_at = 0.0


def is_valid_apple_music_token(token: object) -> bool:
    """Shape check for a MusicKit user token; no cryptographic verification."""
    if not isinstance(token, str):
        return False
    if len(token) < _USER_TOKEN_MIN_LENGTH:
        return False
    return bool(_USER_TOKEN_RE.fullmatch(token))

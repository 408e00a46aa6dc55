"""Runtime configuration for the auth core.

Everything is read from the environment (optionally seeded from ``.env`` by
:func:`posterplay.env_utils.load_env`). Secrets stay inside this object; the
HTTP layer only ever asks whether a platform is configured.

Environment Variables:
- SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET / SPOTIFY_REDIRECT_URI
- SPOTIFY_SCOPES: space-separated override of the default scopes
- APPLE_MUSIC_TEAM_ID / APPLE_MUSIC_KEY_ID / APPLE_MUSIC_PRIVATE_KEY
- APP_URL: allowed Origin for state-changing requests
  (legacy: NEXTAUTH_URL, NEXT_PUBLIC_APP_URL)
- COOKIE_SECURE: force the Secure attribute (default: on in production)
- COOKIE_SAMESITE: SameSite attribute (default: "lax")
- RATE_LIMIT_ENABLED: toggle the auth endpoint limiter (default: on)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .env_helpers import env_flag, env_str

# space-separated - playlist creation plus the profile fields /me returns
_SCOPES_DEFAULT = (
    "playlist-modify-public "
    "playlist-modify-private "
    "ugc-image-upload "
    "user-read-email "
    "user-read-private"
)

_PRODUCTION_ENVS = {"prod", "production"}


def _is_production() -> bool:
    return (os.getenv("ENV") or "dev").strip().lower() in _PRODUCTION_ENVS


@dataclass(frozen=True)
class AuthSettings:
    spotify_client_id: str = ""
    spotify_client_secret: str = field(default="", repr=False)
    spotify_redirect_uri: str = ""
    spotify_scopes: tuple[str, ...] = tuple(_SCOPES_DEFAULT.split())

    apple_music_team_id: str = ""
    apple_music_key_id: str = ""
    apple_music_private_key: str = field(default="", repr=False)

    app_url: str = ""

    cookie_secure: bool = False
    cookie_samesite: str = "lax"

    rate_limit_enabled: bool = True

    @classmethod
    def from_env(cls) -> "AuthSettings":
        scopes = env_str("SPOTIFY_SCOPES", default=_SCOPES_DEFAULT)
        return cls(
            spotify_client_id=env_str("SPOTIFY_CLIENT_ID"),
            spotify_client_secret=env_str("SPOTIFY_CLIENT_SECRET"),
            spotify_redirect_uri=env_str("SPOTIFY_REDIRECT_URI"),
            spotify_scopes=tuple(scopes.split()),
            apple_music_team_id=env_str("APPLE_MUSIC_TEAM_ID"),
            apple_music_key_id=env_str("APPLE_MUSIC_KEY_ID"),
            apple_music_private_key=os.getenv("APPLE_MUSIC_PRIVATE_KEY", ""),
            app_url=env_str("APP_URL", legacy=("NEXTAUTH_URL", "NEXT_PUBLIC_APP_URL")),
            cookie_secure=env_flag("COOKIE_SECURE", default=_is_production()),
            cookie_samesite=env_str("COOKIE_SAMESITE", default="lax").lower(),
            rate_limit_enabled=env_flag("RATE_LIMIT_ENABLED", default=True),
        )

    @property
    def spotify_configured(self) -> bool:
        return bool(
            self.spotify_client_id
            and self.spotify_client_secret
            and self.spotify_redirect_uri
        )

    @property
    def apple_music_configured(self) -> bool:
        return bool(
            self.apple_music_team_id
            and self.apple_music_key_id
            and self.apple_music_private_key
        )

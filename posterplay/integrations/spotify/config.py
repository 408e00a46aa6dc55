from __future__ import annotations

from ...config import AuthSettings

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE = "https://api.spotify.com/v1"


def get_spotify_scopes(settings: AuthSettings) -> list[str]:
    """Return the configured Spotify OAuth scopes.

    Defaults cover what the app needs:
    - playlist-modify-public / playlist-modify-private: create the playlist
    - ugc-image-upload: attach the poster as playlist cover
    - user-read-email / user-read-private: profile fields for /api/auth/me

    Override with SPOTIFY_SCOPES to customize permissions.
    """
    return list(settings.spotify_scopes)


def missing_credentials(settings: AuthSettings) -> tuple[str, ...]:
    missing = []
    if not settings.spotify_client_id:
        missing.append("SPOTIFY_CLIENT_ID")
    if not settings.spotify_client_secret:
        missing.append("SPOTIFY_CLIENT_SECRET")
    if not settings.spotify_redirect_uri:
        missing.append("SPOTIFY_REDIRECT_URI")
    return tuple(missing)

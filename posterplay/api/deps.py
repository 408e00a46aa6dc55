"""Request-scoped accessors for what ``create_app`` wires onto ``app.state``."""

from fastapi import Request

from ..auth.cookies import CookieOptions
from ..config import AuthSettings
from ..integrations.apple_music import AppleMusicClient, DeveloperTokenCache
from ..integrations.spotify import SpotifyOAuth


def get_settings(request: Request) -> AuthSettings:
    return request.app.state.settings


def get_cookie_options(request: Request) -> CookieOptions:
    return CookieOptions.from_settings(request.app.state.settings)


def get_spotify(request: Request) -> SpotifyOAuth:
    return request.app.state.spotify


def get_apple_music(request: Request) -> AppleMusicClient:
    return request.app.state.apple_music


def get_developer_tokens(request: Request) -> DeveloperTokenCache:
    return request.app.state.developer_tokens

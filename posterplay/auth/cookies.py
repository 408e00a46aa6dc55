"""Cookie session store.

Tokens live only in httpOnly cookies, one cookie per token field. Writers
append Set-Cookie headers so several helpers can act on one response; readers
return raw values and leave validation to whichever API later uses the token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, NamedTuple, Protocol

from starlette.responses import Response

from ..config import AuthSettings
from .models import Platform

logger = logging.getLogger(__name__)


class CookieNames(NamedTuple):
    spotify_access: str
    spotify_refresh: str
    apple_music_user: str
    platform: str
    oauth_state: str


NAMES = CookieNames(
    "spotify_access_token",
    "spotify_refresh_token",
    "apple_music_user_token",
    "music_platform",
    "spotify_oauth_state",
)

SPOTIFY_REFRESH_TTL = 60 * 60 * 24 * 30  # 30 days
APPLE_MUSIC_USER_TTL = 60 * 60 * 24  # MusicKit user tokens last about a day
OAUTH_STATE_TTL = 5 * 60

_SPOTIFY_COOKIES = (NAMES.spotify_access, NAMES.spotify_refresh)
_APPLE_MUSIC_COOKIES = (NAMES.apple_music_user,)


class _HasCookies(Protocol):
    @property
    def cookies(self) -> Any: ...


@dataclass(frozen=True)
class CookieOptions:
    secure: bool = False
    samesite: str = "lax"
    path: str = "/"
    domain: str | None = None

    @classmethod
    def from_settings(cls, settings: AuthSettings) -> "CookieOptions":
        return cls(secure=settings.cookie_secure, samesite=settings.cookie_samesite)


DEFAULT_OPTIONS = CookieOptions()


def format_cookie_header(
    key: str,
    value: str,
    max_age: int,
    secure: bool,
    samesite: str,
    path: str = "/",
    httponly: bool = True,
    domain: str | None = None,
) -> str:
    """
    Format a Set-Cookie header with consistent attributes.

    This is the only place that formats Set-Cookie headers, ensuring
    consistent attribute ordering across all cookies. ``max_age <= 0`` also
    emits an epoch Expires so older browsers drop the cookie.
    """
    samesite_map = {"lax": "Lax", "strict": "Strict", "none": "None"}
    ss = samesite_map.get(samesite.lower(), "Lax")

    # SameSite=None requires Secure=True (browser enforcement)
    if ss == "None":
        secure = True

    int_max_age = max(0, int(max_age))
    parts = [
        f"{key}={value}",
        f"Max-Age={int_max_age}",
        f"Path={path}",
        f"SameSite={ss}",
    ]
    if int_max_age <= 0:
        parts.append("Expires=Thu, 01 Jan 1970 00:00:00 GMT")
    if httponly:
        parts.append("HttpOnly")
    if secure:
        parts.append("Secure")
    if domain:
        parts.append(f"Domain={domain}")
    return "; ".join(parts)


def _append_cookie(
    response: Response, name: str, value: str, max_age: int, options: CookieOptions
) -> None:
    response.headers.append(
        "set-cookie",
        format_cookie_header(
            name,
            value,
            max_age=max_age,
            secure=options.secure,
            samesite=options.samesite,
            path=options.path,
            httponly=True,
            domain=options.domain,
        ),
    )


def _expire(response: Response, names: tuple[str, ...], options: CookieOptions) -> None:
    for name in names:
        _append_cookie(response, name, "", 0, options)


# --- Spotify ---------------------------------------------------------------


def set_auth_cookies(
    response: Response,
    access_token: str,
    refresh_token: str | None,
    expires_in: int,
    *,
    options: CookieOptions = DEFAULT_OPTIONS,
) -> None:
    """Persist a Spotify token pair; the access cookie lives exactly ``expires_in``."""
    ttl = max(0, int(expires_in))
    _append_cookie(response, NAMES.spotify_access, access_token, ttl, options)
    if refresh_token:
        _append_cookie(
            response, NAMES.spotify_refresh, refresh_token, SPOTIFY_REFRESH_TTL, options
        )
    _append_cookie(response, NAMES.platform, Platform.SPOTIFY.value, ttl, options)


def get_access_token(request: _HasCookies) -> str | None:
    return (request.cookies or {}).get(NAMES.spotify_access) or None


def get_refresh_token(request: _HasCookies) -> str | None:
    return (request.cookies or {}).get(NAMES.spotify_refresh) or None


def clear_auth_cookies(
    response: Response, *, options: CookieOptions = DEFAULT_OPTIONS
) -> None:
    _expire(response, (*_SPOTIFY_COOKIES, NAMES.platform), options)


# --- Apple Music -----------------------------------------------------------


def set_apple_music_cookies(
    response: Response,
    music_user_token: str,
    *,
    options: CookieOptions = DEFAULT_OPTIONS,
) -> None:
    _append_cookie(
        response, NAMES.apple_music_user, music_user_token, APPLE_MUSIC_USER_TTL, options
    )
    _append_cookie(
        response, NAMES.platform, Platform.APPLE_MUSIC.value, APPLE_MUSIC_USER_TTL, options
    )


def get_apple_music_token(request: _HasCookies) -> str | None:
    return (request.cookies or {}).get(NAMES.apple_music_user) or None


def clear_apple_music_cookies(
    response: Response, *, options: CookieOptions = DEFAULT_OPTIONS
) -> None:
    _expire(response, (*_APPLE_MUSIC_COOKIES, NAMES.platform), options)


# --- Cross-platform --------------------------------------------------------


def get_authenticated_platform(request: _HasCookies) -> Platform | None:
    """Which platform the request is signed in with, if any.

    The platform cookie wins when its token cookie is still present; otherwise
    the platform is inferred from whichever token cookie exists.
    """
    jar = request.cookies or {}
    flagged = Platform.parse(jar.get(NAMES.platform))
    has_spotify = bool(jar.get(NAMES.spotify_access) or jar.get(NAMES.spotify_refresh))
    has_apple = bool(jar.get(NAMES.apple_music_user))

    if flagged is Platform.SPOTIFY and has_spotify:
        return flagged
    if flagged is Platform.APPLE_MUSIC and has_apple:
        return flagged
    if has_spotify:
        return Platform.SPOTIFY
    if has_apple:
        return Platform.APPLE_MUSIC
    return None


def get_platform_access_token(request: _HasCookies) -> str | None:
    """The one "current access token" for the active platform."""
    platform = get_authenticated_platform(request)
    if platform is Platform.SPOTIFY:
        return get_access_token(request)
    if platform is Platform.APPLE_MUSIC:
        return get_apple_music_token(request)
    return None


def clear_all_auth_cookies(
    response: Response, *, options: CookieOptions = DEFAULT_OPTIONS
) -> None:
    """Expire every platform's cookies whether or not they were ever set."""
    _expire(
        response,
        (*_SPOTIFY_COOKIES, *_APPLE_MUSIC_COOKIES, NAMES.platform, NAMES.oauth_state),
        options,
    )
    logger.debug("auth cookies cleared", extra={"meta": {"scope": "all"}})


# --- OAuth state -----------------------------------------------------------


def set_oauth_state_cookie(
    response: Response, state: str, *, options: CookieOptions = DEFAULT_OPTIONS
) -> None:
    _append_cookie(response, NAMES.oauth_state, state, OAUTH_STATE_TTL, options)


def get_oauth_state(request: _HasCookies) -> str | None:
    return (request.cookies or {}).get(NAMES.oauth_state) or None


def clear_oauth_state_cookie(
    response: Response, *, options: CookieOptions = DEFAULT_OPTIONS
) -> None:
    _expire(response, (NAMES.oauth_state,), options)

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from ..auth import cookies
from ..auth.cookies import CookieOptions
from ..auth.errors import ConfigurationError, TokenExchangeError
from ..auth.models import MeOut, Platform, SuccessOut, TokenBundle, UserIdentity
from ..http_errors import error_response, internal_error, unauthorized
from ..integrations.apple_music import AppleMusicClient, DeveloperTokenCache
from ..integrations.spotify import ProviderErrorKind, ProviderRequestError, SpotifyOAuth
from ..middleware.rate_limit import rate_limited
from ..rate_limit import RateLimitPresets
from .deps import get_apple_music, get_cookie_options, get_developer_tokens, get_spotify

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    dependencies=[Depends(rate_limited(RateLimitPresets.RELAXED))],
)

FETCH_FAILED_MESSAGE = "Failed to fetch user"
INVALID_TOKEN_MESSAGE = "Invalid or expired token"


def _me_response(user: UserIdentity) -> JSONResponse:
    body = MeOut.from_identity(user).model_dump(by_alias=True, exclude_none=True, mode="json")
    return JSONResponse(body)


async def _spotify_me(
    request: Request, spotify: SpotifyOAuth, options: CookieOptions
) -> Response:
    access_token = cookies.get_access_token(request)
    refreshed: TokenBundle | None = None

    if not access_token:
        refresh_token = cookies.get_refresh_token(request)
        if not refresh_token:
            return unauthorized()
        try:
            refreshed = await spotify.refresh_access_token(refresh_token)
        except TokenExchangeError as e:
            logger.info("me.refresh_failed", extra={"meta": {"provider_status": e.status}})
            response = unauthorized()
            cookies.clear_auth_cookies(response, options=options)
            return response
        access_token = refreshed.access_token

    try:
        user = await spotify.get_current_user(access_token)
    except ProviderRequestError as e:
        if e.kind is ProviderErrorKind.CLIENT_ERROR:
            return error_response(INVALID_TOKEN_MESSAGE, status=401, code="invalid_token")
        logger.error(
            "me.fetch_failed",
            extra={"meta": {"platform": Platform.SPOTIFY.value, "kind": e.kind.value, "status": e.status}},
        )
        return internal_error(FETCH_FAILED_MESSAGE)

    response = _me_response(user)
    if refreshed is not None:
        cookies.set_auth_cookies(
            response,
            refreshed.access_token,
            refreshed.refresh_token,
            refreshed.expires_in,
            options=options,
        )
    return response


async def _apple_music_me(
    request: Request, apple_music: AppleMusicClient, tokens: DeveloperTokenCache
) -> Response:
    user_token = cookies.get_apple_music_token(request)
    if not user_token:
        return unauthorized()
    try:
        developer_token = tokens.get()
    except ConfigurationError as e:
        logger.error(
            "me.fetch_failed",
            extra={"meta": {"platform": Platform.APPLE_MUSIC.value, "missing": list(e.missing)}},
        )
        return internal_error(FETCH_FAILED_MESSAGE)
    user = await apple_music.get_current_user(user_token, developer_token)
    return _me_response(user)


@router.get("/me")
async def me(
    request: Request,
    spotify: SpotifyOAuth = Depends(get_spotify),
    apple_music: AppleMusicClient = Depends(get_apple_music),
    tokens: DeveloperTokenCache = Depends(get_developer_tokens),
    options: CookieOptions = Depends(get_cookie_options),
) -> Response:
    """Current user for whichever platform the cookies say is active."""
    platform = cookies.get_authenticated_platform(request)
    if platform is Platform.SPOTIFY:
        return await _spotify_me(request, spotify, options)
    if platform is Platform.APPLE_MUSIC:
        return await _apple_music_me(request, apple_music, tokens)
    return unauthorized()


@router.post("/logout")
async def logout(options: CookieOptions = Depends(get_cookie_options)) -> Response:
    response = JSONResponse(SuccessOut().model_dump())
    cookies.clear_all_auth_cookies(response, options=options)
    return response

from __future__ import annotations

import logging
import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from ..auth import cookies
from ..auth.cookies import CookieOptions
from ..auth.errors import (
    ERR_AUTH_FAILED,
    ERR_INVALID_STATE,
    ERR_MISSING_CODE,
    ConfigurationError,
    TokenExchangeError,
)
from ..auth.models import SuccessOut
from ..csrf import generate_state
from ..integrations.spotify import SpotifyOAuth
from ..middleware.rate_limit import rate_limited
from ..rate_limit import RateLimitPresets
from .deps import get_cookie_options, get_spotify

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    dependencies=[Depends(rate_limited(RateLimitPresets.RELAXED))],
)

CALLBACK_PATH = "/api/auth/spotify/callback"
SUCCESS_PATH = "/upload"


def _landing_error(code: str) -> RedirectResponse:
    return RedirectResponse(f"/?{urlencode({'error': code})}", status_code=302)


@router.get("/spotify/login")
async def spotify_login(
    spotify: SpotifyOAuth = Depends(get_spotify),
    options: CookieOptions = Depends(get_cookie_options),
) -> Response:
    """Redirect the browser to Spotify's consent screen."""
    state = generate_state()
    url = spotify.authorize_url(state)
    response = RedirectResponse(url, status_code=302)
    cookies.set_oauth_state_cookie(response, state, options=options)
    logger.info("spotify.login.redirect", extra={"meta": {"state_length": len(state)}})
    return response


@router.get("/login")
async def legacy_login(
    spotify: SpotifyOAuth = Depends(get_spotify),
    options: CookieOptions = Depends(get_cookie_options),
) -> Response:
    return await spotify_login(spotify=spotify, options=options)


@router.get("/callback")
async def legacy_callback(request: Request) -> Response:
    target = CALLBACK_PATH
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return RedirectResponse(target, status_code=307)


@router.get("/spotify/callback")
async def spotify_callback(
    request: Request,
    spotify: SpotifyOAuth = Depends(get_spotify),
    options: CookieOptions = Depends(get_cookie_options),
) -> Response:
    params = request.query_params

    provider_error = params.get("error")
    if provider_error:
        logger.info("spotify.callback.denied", extra={"meta": {"error": provider_error}})
        return _landing_error(provider_error)

    expected_state = cookies.get_oauth_state(request)
    state = params.get("state") or ""
    if not expected_state or not secrets.compare_digest(state, expected_state):
        logger.warning(
            "spotify.callback.state_mismatch",
            extra={"meta": {"state_present": bool(state), "cookie_present": bool(expected_state)}},
        )
        return _landing_error(ERR_INVALID_STATE)

    code = (params.get("code") or "").strip()
    if not code:
        return _landing_error(ERR_MISSING_CODE)

    try:
        bundle = await spotify.exchange_code_for_tokens(code)
    except (TokenExchangeError, ConfigurationError) as e:
        logger.error(
            "spotify.callback.exchange_failed",
            extra={"meta": {"error_type": type(e).__name__, "code": e.code}},
        )
        return _landing_error(ERR_AUTH_FAILED)

    response = RedirectResponse(SUCCESS_PATH, status_code=302)
    cookies.set_auth_cookies(
        response,
        bundle.access_token,
        bundle.refresh_token,
        bundle.expires_in,
        options=options,
    )
    cookies.clear_oauth_state_cookie(response, options=options)
    logger.info("spotify.callback.success", extra={"meta": {"expires_in": bundle.expires_in}})
    return response


@router.post("/spotify/logout")
async def spotify_logout(options: CookieOptions = Depends(get_cookie_options)) -> Response:
    response = JSONResponse(SuccessOut().model_dump())
    cookies.clear_auth_cookies(response, options=options)
    return response

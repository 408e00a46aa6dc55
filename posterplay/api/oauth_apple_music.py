from __future__ import annotations

import logging

import jwt
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from ..auth import cookies
from ..auth.cookies import CookieOptions
from ..auth.errors import ConfigurationError, ValidationError
from ..auth.models import DeveloperTokenOut, SuccessOut
from ..config import AuthSettings
from ..csrf import is_origin_allowed
from ..http_errors import forbidden, internal_error, not_configured
from ..integrations.apple_music import DeveloperTokenCache, is_valid_apple_music_token
from ..middleware.rate_limit import rate_limited
from ..rate_limit import RateLimitPresets
from .deps import get_cookie_options, get_developer_tokens, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth/apple-music",
    tags=["auth"],
    dependencies=[Depends(rate_limited(RateLimitPresets.RELAXED))],
)

NOT_CONFIGURED_MESSAGE = (
    "Apple Music is not configured. Please set up the required credentials."
)
TOKEN_FAILED_MESSAGE = "Failed to generate developer token"
STORE_FAILED_MESSAGE = "Failed to store authentication token"


@router.get("/developer-token")
async def developer_token(
    settings: AuthSettings = Depends(get_settings),
    tokens: DeveloperTokenCache = Depends(get_developer_tokens),
) -> Response:
    """Hand MusicKit the developer token it needs to configure itself."""
    if not settings.apple_music_configured:
        logger.error("apple_music.developer_token.not_configured")
        return not_configured(NOT_CONFIGURED_MESSAGE)

    try:
        token = tokens.get()
    except (ConfigurationError, jwt.PyJWTError, ValueError) as e:
        logger.error(
            "apple_music.developer_token.failed",
            extra={
                "meta": {
                    "error_type": type(e).__name__,
                    "missing": list(getattr(e, "missing", ())),
                }
            },
        )
        return internal_error(TOKEN_FAILED_MESSAGE)

    return JSONResponse(DeveloperTokenOut(token=token).model_dump())


@router.post("/store-token")
async def store_token(
    request: Request,
    settings: AuthSettings = Depends(get_settings),
    options: CookieOptions = Depends(get_cookie_options),
) -> Response:
    origin = request.headers.get("origin")
    if not is_origin_allowed(origin, settings.app_url):
        logger.warning("apple_music.store_token.bad_origin", extra={"meta": {"origin": origin}})
        return forbidden("Invalid origin")

    try:
        body = await request.json()
    except ValueError:
        body = None
    music_user_token = body.get("musicUserToken") if isinstance(body, dict) else None

    if not music_user_token:
        raise ValidationError("musicUserToken is required")
    if not is_valid_apple_music_token(music_user_token):
        raise ValidationError("Invalid musicUserToken format")

    response = JSONResponse(SuccessOut().model_dump())
    try:
        cookies.set_apple_music_cookies(response, music_user_token, options=options)
    except (ValueError, UnicodeError) as e:
        logger.error(
            "apple_music.store_token.failed",
            extra={"meta": {"error_type": type(e).__name__}},
        )
        return internal_error(STORE_FAILED_MESSAGE)

    logger.info(
        "apple_music.store_token.stored",
        extra={"meta": {"token_length": len(music_user_token)}},
    )
    return response


@router.post("/logout")
async def apple_music_logout(options: CookieOptions = Depends(get_cookie_options)) -> Response:
    response = JSONResponse(SuccessOut().model_dump())
    cookies.clear_apple_music_cookies(response, options=options)
    return response

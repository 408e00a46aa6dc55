"""FastAPI application entrypoint.

``create_app`` is the composition root: it resolves settings, wires the
limiter and provider clients onto ``app.state`` and mounts the routers. A lazy
module-level ``app`` serves ``uvicorn posterplay.main:app``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI

from . import __version__
from .api import apple_music_router, auth_router, health_router, spotify_router
from .config import AuthSettings
from .env_utils import load_env
from .error_handlers import register_error_handlers
from .integrations.apple_music import AppleMusicClient, DeveloperTokenCache
from .integrations.spotify import SpotifyOAuth
from .logging_config import configure_logging
from .middleware import RateLimitHeadersMiddleware, RequestIDMiddleware
from .rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)


def create_app(
    settings: AuthSettings | None = None,
    *,
    rate_limiter: FixedWindowRateLimiter | None = None,
    spotify: SpotifyOAuth | None = None,
    apple_music: AppleMusicClient | None = None,
) -> FastAPI:
    """Composition root for the FastAPI application."""
    if settings is None:
        load_env()
        settings = AuthSettings.from_env()
    configure_logging()

    app = FastAPI(title="posterplay", version=__version__)
    app.state.settings = settings
    app.state.rate_limiter = rate_limiter or FixedWindowRateLimiter()
    app.state.spotify = spotify or SpotifyOAuth(settings)
    app.state.apple_music = apple_music or AppleMusicClient()
    app.state.developer_tokens = DeveloperTokenCache(settings)

    # Added last runs first: request id wraps everything
    app.add_middleware(RateLimitHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(spotify_router)
    app.include_router(apple_music_router)

    logger.info(
        "app.created",
        extra={
            "meta": {
                "spotify_configured": settings.spotify_configured,
                "apple_music_configured": settings.apple_music_configured,
                "rate_limit_enabled": settings.rate_limit_enabled,
                "cookie_secure": settings.cookie_secure,
            }
        },
    )
    return app


_app_instance: FastAPI | None = None


def get_app() -> FastAPI:
    """Get the FastAPI app instance, creating it lazily if needed."""
    global _app_instance
    if _app_instance is None:
        _app_instance = create_app()
    return _app_instance


class _LazyApp:
    """Lazy app accessor that creates the app only when accessed."""

    async def __call__(self, scope, receive, send):
        return await get_app()(scope, receive, send)

    def __getattr__(self, name: str) -> Any:
        return getattr(get_app(), name)

    def __repr__(self) -> str:
        if _app_instance is None:
            return "<LazyApp: not yet created>"
        return repr(_app_instance)


app = _LazyApp()

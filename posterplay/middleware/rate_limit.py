# posterplay/middleware/rate_limit.py
import logging
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from posterplay.auth.errors import RateLimitExceeded
from posterplay.headers import get_rate_limit_headers
from posterplay.rate_limit import RateLimitPreset, client_identity

logger = logging.getLogger(__name__)

_STATE_KEY = "rate_limit_headers"


def rate_limited(preset: RateLimitPreset) -> Callable[[Request], Awaitable[None]]:
    """FastAPI dependency that charges one request against ``preset``.

    Rejections raise :class:`RateLimitExceeded`, which the error handlers turn
    into a 429 before the route body runs.
    """

    async def _enforce(request: Request) -> None:
        if not request.app.state.settings.rate_limit_enabled:
            return

        limiter = request.app.state.rate_limiter
        client_key = client_identity(request)
        path = request.url.path
        decision = limiter.consume(client_key, preset, scope=path)

        if not decision.allowed:
            logger.warning(
                "rate_limit.rejected",
                extra={
                    "meta": {
                        "client": client_key,
                        "path": path,
                        "preset": preset.name,
                        "limit": decision.limit,
                        "retry_after": decision.retry_after,
                    }
                },
            )
            raise RateLimitExceeded(
                preset.message,
                retry_after=decision.retry_after,
                limit=decision.limit,
                reset_at=decision.reset_at,
            )

        setattr(
            request.state,
            _STATE_KEY,
            get_rate_limit_headers(
                decision.limit, decision.remaining, decision.reset_at * 1000
            ),
        )

    return _enforce


class RateLimitHeadersMiddleware(BaseHTTPMiddleware):
    """Copy the budget recorded by :func:`rate_limited` onto the response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        headers = getattr(request.state, _STATE_KEY, None)
        if headers:
            for name, value in headers.items():
                response.headers.setdefault(name, value)
        return response

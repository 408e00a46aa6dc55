from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth.errors import (
    ERR_TOO_MANY,
    ConfigurationError,
    RateLimitExceeded,
    TokenExchangeError,
    ValidationError,
)
from .headers import get_rate_limit_headers, get_retry_after_header
from .http_errors import bad_request, error_response, internal_error, method_not_allowed

log = logging.getLogger(__name__)

GENERIC_NOT_CONFIGURED = "Service is not configured"


def _request_meta(request: Request, status: int) -> dict:
    return {
        "status_code": status,
        "path": request.url.path,
        "method": request.method,
    }


async def handle_rate_limited(request: Request, exc: RateLimitExceeded):
    headers = {
        **get_retry_after_header(exc.retry_after),
        **get_rate_limit_headers(exc.limit, 0, exc.reset_at * 1000),
    }
    return error_response(
        exc.message,
        status=429,
        code=ERR_TOO_MANY,
        extra={"retryAfter": exc.retry_after},
        headers=headers,
    )


async def handle_configuration_error(request: Request, exc: ConfigurationError):
    # The missing names go to the log, never to the client
    log.error(
        "configuration.missing",
        extra={"meta": {**_request_meta(request, 500), "missing": list(exc.missing)}},
    )
    return internal_error(GENERIC_NOT_CONFIGURED, code=exc.code)


async def handle_token_exchange_error(request: Request, exc: TokenExchangeError):
    log.warning(
        "token_exchange.failed",
        extra={"meta": {**_request_meta(request, 401), "provider_status": exc.status}},
    )
    return error_response("Invalid or expired token", status=401, code=exc.code)


async def handle_validation_error(request: Request, exc: ValidationError):
    return bad_request(exc.message, code=exc.code)


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    log.info("request.invalid", extra={"meta": _request_meta(request, 400)})
    return bad_request("Invalid request")


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    status = exc.status_code
    if status == 405:
        return method_not_allowed()
    headers = dict(exc.headers or {})
    detail = exc.detail if isinstance(exc.detail, str) and exc.detail else "Request failed"
    return error_response(detail, status=status, code=f"http_{status}", headers=headers)


async def handle_unexpected_error(request: Request, exc: Exception):
    log.exception("unhandled.exception", extra={"meta": _request_meta(request, 500)})
    return internal_error()


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RateLimitExceeded, handle_rate_limited)
    app.add_exception_handler(ConfigurationError, handle_configuration_error)
    app.add_exception_handler(TokenExchangeError, handle_token_exchange_error)
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fastapi.responses import JSONResponse

from .auth.errors import ERR_INVALID, ERR_INVALID_ORIGIN, ERR_NOT_CONFIGURED


def error_response(
    message: str,
    *,
    status: int,
    code: str | None = None,
    extra: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Return a JSONResponse with the ``{"error": message}`` body clients map on.

    ``code`` travels in the X-Error-Code header so the body stays stable.
    """
    hdrs: dict[str, str] = {}
    if code:
        hdrs["X-Error-Code"] = code
    if headers:
        hdrs.update(dict(headers))
    payload: dict[str, Any] = {"error": message}
    if extra:
        payload.update(dict(extra))
    return JSONResponse(payload, status_code=status, headers=hdrs)


def bad_request(message: str, *, code: str = ERR_INVALID) -> JSONResponse:
    return error_response(message, status=400, code=code)


def unauthorized(message: str = "Not authenticated") -> JSONResponse:
    return error_response(message, status=401, code="unauthorized")


def forbidden(message: str, *, code: str = ERR_INVALID_ORIGIN) -> JSONResponse:
    return error_response(message, status=403, code=code)


def method_not_allowed() -> JSONResponse:
    return error_response("Method not allowed", status=405, code="method_not_allowed")


def internal_error(
    message: str = "Internal server error", *, code: str = "internal"
) -> JSONResponse:
    return error_response(message, status=500, code=code)


def not_configured(message: str) -> JSONResponse:
    return internal_error(message, code=ERR_NOT_CONFIGURED)

"""CSRF helpers: origin comparison for state-changing posts and OAuth state."""

from __future__ import annotations

import secrets
import string
from urllib.parse import urlparse

_STATE_ALPHABET = string.ascii_letters + string.digits


def normalize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    try:
        parsed = urlparse(origin.strip())
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"


def is_origin_allowed(origin: str | None, app_url: str | None) -> bool:
    """True unless an Origin header is present and differs from ``app_url``.

    Requests without an Origin (same-origin navigations, server-side callers)
    pass. With no configured app URL there is nothing to compare against, so
    any present Origin passes as well.
    """
    if origin is None or not origin.strip():
        return True
    expected = normalize_origin(app_url)
    if expected is None:
        return True
    return normalize_origin(origin) == expected


def generate_state(length: int = 16) -> str:
    """Random alphanumeric value for the OAuth ``state`` round trip."""
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(_STATE_ALPHABET) for _ in range(length))

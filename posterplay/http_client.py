import os

import httpx

# Provider calls are interactive (a user is waiting on a redirect), keep them short
_DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


def _timeout_from_env() -> httpx.Timeout:
    raw = os.getenv("HTTP_CLIENT_TIMEOUT")
    if not raw:
        return _DEFAULT_TIMEOUT
    try:
        return httpx.Timeout(float(raw))
    except ValueError:
        return _DEFAULT_TIMEOUT


def build_async_httpx_client(
    timeout: float | None = None, **kwargs
) -> httpx.AsyncClient:
    """Create a configured httpx.AsyncClient with sane defaults.

    Tests should inject their own client (usually over ``httpx.MockTransport``)
    instead of relying on this.
    """
    t = httpx.Timeout(timeout) if timeout else _timeout_from_env()
    return httpx.AsyncClient(timeout=t, **kwargs)

"""Shared helpers for provider stubbing and cookie inspection."""

from collections.abc import Callable

import httpx

APP_URL = "https://app.example"
REDIRECT_URI = "http://testserver/api/auth/spotify/callback"


class ProviderStub:
    """Routes outbound provider calls to canned responses.

    Register with ``on(method, url, status, json)``; pass ``exc`` to make the
    call fail at the transport level instead. Unregistered calls get a 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: list[httpx.Request] = []

    def on(self, method, url, status=200, json=None, *, text=None, exc=None) -> None:
        def _respond(request: httpx.Request) -> httpx.Response:
            if exc is not None:
                raise exc
            if text is not None:
                return httpx.Response(status, text=text)
            return httpx.Response(status, json=json)

        self.routes[(method.upper(), url)] = _respond

    def calls_to(self, url: str) -> list[httpx.Request]:
        return [c for c in self.calls if bare_url(c) == url]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.routes.get((request.method, bare_url(request)))
        if handler is None:
            return httpx.Response(404, json={"error": "not stubbed"})
        return handler(request)


def bare_url(request: httpx.Request) -> str:
    return f"{request.url.scheme}://{request.url.host}{request.url.path}"


def cookie_header(**cookies: str) -> dict[str, str]:
    return {"Cookie": "; ".join(f"{k}={v}" for k, v in cookies.items())}


def set_cookies(response) -> dict[str, str]:
    """Map cookie name -> full Set-Cookie header for a response."""
    out = {}
    for header in response.headers.get_list("set-cookie"):
        name = header.split("=", 1)[0]
        out[name] = header
    return out


def cookie_value(set_cookie_header: str) -> str:
    return set_cookie_header.split(";", 1)[0].split("=", 1)[1]


# Shape of a real MusicKit user token: long base64 text
MUSIC_USER_TOKEN = "Am9" + "A1b2C3d4+/" * 12 + "=="

"""Client-side session controller for the web shell."""

from .http import RequestErrorKind, SessionApi, SessionRequestError
from .musickit import MusicKitBootstrap
from .session import AuthSessionController, Session, SessionState

__all__ = [
    "AuthSessionController",
    "MusicKitBootstrap",
    "RequestErrorKind",
    "Session",
    "SessionApi",
    "SessionRequestError",
    "SessionState",
]

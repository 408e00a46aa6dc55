"""Client-side session state.

One :class:`AuthSessionController` is built at startup and handed to whatever
needs to know who is signed in. It is the only writer of the session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..auth.errors import AuthorizationError, PlatformUnavailableError
from ..auth.models import Platform, UserIdentity
from .http import RequestErrorKind, SessionApi, SessionRequestError
from .musickit import MusicKitBootstrap

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Session:
    state: SessionState = SessionState.UNINITIALIZED
    user: UserIdentity | None = None

    @property
    def platform(self) -> Platform | None:
        return self.user.platform if self.user else None

    @property
    def loading(self) -> bool:
        return self.state in (SessionState.UNINITIALIZED, SessionState.CHECKING)


Listener = Callable[[Session], None]


class AuthSessionController:
    """Owns the session and deduplicates session reads.

    At most one session read is outstanding at any time: concurrent
    :meth:`check_auth` callers all await the same task and see its result.
    """

    def __init__(
        self,
        api: SessionApi,
        *,
        musickit: MusicKitBootstrap | None = None,
        navigate: Callable[[str], None] | None = None,
    ) -> None:
        self._api = api
        self._musickit = musickit
        self._navigate = navigate
        self._session = Session()
        self._inflight: asyncio.Task[Session] | None = None
        self._listeners: list[Listener] = []

    @property
    def session(self) -> Session:
        return self._session

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set(self, session: Session) -> Session:
        self._session = session
        for listener in list(self._listeners):
            listener(session)
        return session

    async def check_auth(self) -> Session:
        if self._inflight is None:
            self._inflight = asyncio.create_task(self._read_session())
        # A caller abandoning its await must not cancel the shared read
        return await asyncio.shield(self._inflight)

    async def _read_session(self) -> Session:
        try:
            self._set(Session(SessionState.CHECKING, self._session.user))
            try:
                user = await self._api.get_session()
            except SessionRequestError as e:
                if e.kind is not RequestErrorKind.UNAUTHENTICATED:
                    logger.error(
                        "session.check_failed",
                        extra={"meta": {"kind": e.kind.value, "status": e.status}},
                    )
                return self._set(Session(SessionState.ANONYMOUS))
            return self._set(Session(SessionState.AUTHENTICATED, user))
        finally:
            self._inflight = None

    def login_with_spotify(self) -> str:
        """Return the Spotify login URL and hand it to ``navigate`` if set.

        The session is untouched; the redirect round trip ends on a new page
        load which calls :meth:`check_auth`.
        """
        url = self._api.spotify_login_url()
        if self._navigate is not None:
            self._navigate(url)
        return url

    async def login_with_apple_music(self) -> Session:
        musickit = self._musickit.instance if self._musickit else None
        if musickit is None:
            raise PlatformUnavailableError("Apple Music is not available yet")

        try:
            token = await musickit.authorize()
        except AuthorizationError:
            raise
        except Exception as e:
            raise AuthorizationError("Apple Music authorization was denied") from e
        if not token:
            raise AuthorizationError("Apple Music authorization returned no token")

        await self._api.store_apple_music_token(token)
        return await self.check_auth()

    async def logout(self) -> None:
        """Sign out server-side, then drop the local session no matter what.

        A failed request is re-raised after local state is cleared so the
        caller can tell the user the server may still hold cookies.
        """
        try:
            await self._api.logout()
        except SessionRequestError as e:
            logger.error(
                "session.logout_failed",
                extra={"meta": {"kind": e.kind.value, "status": e.status}},
            )
            raise
        finally:
            self._set(Session(SessionState.ANONYMOUS))

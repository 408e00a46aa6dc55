"""One-shot MusicKit initialization.

The MusicKit script loads asynchronously, so the bootstrap probes for its
global on a fixed interval until a deadline. If it never shows up, or the
developer token cannot be fetched, Apple Music simply stays unavailable.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any, Protocol

from .http import SessionApi, SessionRequestError

logger = logging.getLogger(__name__)

PROBE_INTERVAL_SECONDS = 0.1
PROBE_TIMEOUT_SECONDS = 10.0


class MusicKitInstance(Protocol):
    async def authorize(self) -> str | None: ...


class MusicKitGlobal(Protocol):
    def configure(
        self, *, developer_token: str, app_name: str, app_build: str
    ) -> Any: ...


class MusicKitBootstrap:
    def __init__(
        self,
        api: SessionApi,
        probe: Callable[[], MusicKitGlobal | None],
        *,
        interval: float = PROBE_INTERVAL_SECONDS,
        timeout: float = PROBE_TIMEOUT_SECONDS,
        app_name: str = "PosterPlay",
        app_build: str = "1.0.0",
    ) -> None:
        self._api = api
        self._probe = probe
        self._interval = interval
        self._timeout = timeout
        self._app_name = app_name
        self._app_build = app_build
        self._instance: MusicKitInstance | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def available(self) -> bool:
        return self._instance is not None

    @property
    def instance(self) -> MusicKitInstance | None:
        return self._instance

    def start(self) -> asyncio.Task[None]:
        """Schedule initialization once; later calls return the same task."""
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self._task

    async def wait(self) -> bool:
        await self.start()
        return self.available

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _wait_for_global(self) -> MusicKitGlobal | None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout
        while True:
            found = self._probe()
            if found is not None:
                return found
            if loop.time() >= deadline:
                return None
            await asyncio.sleep(self._interval)

    async def _run(self) -> None:
        musickit = await self._wait_for_global()
        if musickit is None:
            logger.info("musickit.unavailable", extra={"meta": {"timeout": self._timeout}})
            return

        try:
            developer_token = await self._api.get_developer_token()
        except SessionRequestError as e:
            logger.warning(
                "musickit.developer_token_failed",
                extra={"meta": {"kind": e.kind.value, "status": e.status}},
            )
            return

        try:
            configured = musickit.configure(
                developer_token=developer_token,
                app_name=self._app_name,
                app_build=self._app_build,
            )
            if inspect.isawaitable(configured):
                configured = await configured
        except Exception:
            logger.warning("musickit.configure_failed", exc_info=True)
            return

        self._instance = configured
        logger.info("musickit.ready")

from __future__ import annotations

import logging

import httpx

from ...auth.models import Platform, UserIdentity
from ...http_client import build_async_httpx_client

logger = logging.getLogger(__name__)

API_BASE = "https://api.music.apple.com/v1"

PLACEHOLDER_USER_ID = "apple-music-user"
DISPLAY_NAME = "Apple Music User"


class AppleMusicClient:
    """Minimal Apple Music API client.

    Apple exposes no profile endpoint, so the storefront id stands in as the
    user id and the display name is fixed.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._http = http_client

    async def _get(self, path: str, *, headers: dict[str, str]) -> httpx.Response:
        if self._http is not None:
            return await self._http.get(f"{API_BASE}{path}", headers=headers)
        async with build_async_httpx_client() as client:
            return await client.get(f"{API_BASE}{path}", headers=headers)

    async def get_current_user(self, user_token: str, developer_token: str) -> UserIdentity:
        storefront_id = PLACEHOLDER_USER_ID
        headers = {
            "Authorization": f"Bearer {developer_token}",
            "Music-User-Token": user_token,
        }
        try:
            response = await self._get("/me/storefront", headers=headers)
            response.raise_for_status()
            data = response.json().get("data") or []
            if data and data[0].get("id"):
                storefront_id = str(data[0]["id"])
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(
                "apple_music.storefront.failed",
                extra={"meta": {"error_type": type(e).__name__}},
            )

        return UserIdentity(
            id=storefront_id,
            display_name=DISPLAY_NAME,
            platform=Platform.APPLE_MUSIC,
        )

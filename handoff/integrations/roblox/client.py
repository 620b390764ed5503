"""Roblox public API client using httpx."""

import logging
from typing import Any

import httpx

from handoff.core.config import settings

logger = logging.getLogger(__name__)

_BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_BLOCK_MARKERS = ("captcha", "access denied", "ray id")


class RobloxRateLimitedError(Exception):
    """Roblox answered 429 or served a challenge page instead of content."""


def _data_list(response: httpx.Response) -> list[dict[str, Any]]:
    """The ``data`` array of a Roblox JSON reply; ValueError if the reply has another shape."""
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError("Unexpected Roblox response: body is not a JSON object")
    data = payload.get("data") or []
    if not isinstance(data, list):
        raise ValueError("Unexpected Roblox response: data is not a list")
    return [item for item in data if isinstance(item, dict)]


def fallback_avatar_url(user_id: int | str, web_url: str | None = None) -> str:
    """Constructible headshot URL used when the thumbnails API gives nothing."""
    base = (web_url or settings.roblox_web_url).rstrip("/")
    return f"{base}/headshot-thumbnail/image?userId={user_id}&width=150&height=150&format=png"


class RobloxClient:
    """Async client for the Roblox users, thumbnails and web endpoints."""

    def __init__(
        self,
        *,
        users_url: str | None = None,
        thumbnails_url: str | None = None,
        web_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.users_url = (users_url or settings.roblox_users_url).rstrip("/")
        self.thumbnails_url = (thumbnails_url or settings.roblox_thumbnails_url).rstrip("/")
        self.web_url = (web_url or settings.roblox_web_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.headers = {
            "User-Agent": _BROWSER_UA,
            "Accept": "application/json",
            "Referer": f"{self.web_url}/",
        }

    async def get_users_by_usernames(
        self, usernames: list[str], *, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        """Batch lookup: exact usernames to user records (``id``, ``name``, ``displayName``)."""
        async with httpx.AsyncClient(
            headers=self.headers, timeout=timeout or self.timeout
        ) as client:
            response = await client.post(
                f"{self.users_url}/v1/usernames/users",
                json={"usernames": usernames, "excludeBannedUsers": True},
            )
            self._raise_for_status(response)
            return _data_list(response)

    async def search_users(
        self, keyword: str, *, limit: int = 10, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        """Keyword search over usernames and display names."""
        async with httpx.AsyncClient(
            headers=self.headers, timeout=timeout or self.timeout
        ) as client:
            response = await client.get(
                f"{self.users_url}/v1/users/search",
                params={"keyword": keyword, "limit": limit},
            )
            self._raise_for_status(response)
            return _data_list(response)

    async def get_avatar_headshot(
        self, user_id: int | str, *, timeout: float | None = None
    ) -> str | None:
        """Return the 150x150 headshot image URL, or None if not rendered yet."""
        async with httpx.AsyncClient(
            headers=self.headers, timeout=timeout or self.timeout
        ) as client:
            response = await client.get(
                f"{self.thumbnails_url}/v1/users/avatar-headshot",
                params={
                    "userIds": str(user_id),
                    "size": "150x150",
                    "format": "Png",
                    "isCircular": "false",
                },
            )
            self._raise_for_status(response)
            data = _data_list(response)
            if data and data[0].get("imageUrl"):
                return str(data[0]["imageUrl"])
            return None

    async def fetch_user_search_page(self, keyword: str, *, timeout: float | None = None) -> str:
        """Fetch the public user-search HTML page."""
        headers = {
            "User-Agent": _BROWSER_UA,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
        async with httpx.AsyncClient(
            headers=headers, timeout=timeout or self.timeout, follow_redirects=True
        ) as client:
            response = await client.get(
                f"{self.web_url}/search/users", params={"keyword": keyword}
            )
            self._raise_for_status(response)
            html = response.text

        lowered = html.lower()
        if len(html) < 1000 or any(marker in lowered for marker in _BLOCK_MARKERS):
            raise RobloxRateLimitedError("User search page blocked or challenged")
        return html

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code == 429:
            raise RobloxRateLimitedError("Rate limited by Roblox")
        response.raise_for_status()

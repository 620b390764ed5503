"""Resolution of a Roblox handle to its canonical account."""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from handoff.core.config import settings
from handoff.core.deadline import Deadline
from handoff.core.exceptions import (
    IdentityNotFoundError,
    InvalidRequestError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
)
from handoff.integrations.roblox.client import (
    RobloxClient,
    RobloxRateLimitedError,
    fallback_avatar_url,
)
from handoff.integrations.roblox.scraper import parse_user_search_html
from handoff.schemas.identity import ResolutionMethod, ResolvedIdentity

logger = logging.getLogger(__name__)

HANDLE_RE = re.compile(r"^[A-Za-z0-9_]+$")
HANDLE_MIN_LENGTH = 3
HANDLE_MAX_LENGTH = 20


def clean_handle(raw: Any) -> str:
    """Trim and validate a handle; raises ``InvalidRequestError`` on bad input."""
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidRequestError("Username required")
    handle = raw.strip()
    if not HANDLE_MIN_LENGTH <= len(handle) <= HANDLE_MAX_LENGTH:
        raise InvalidRequestError(
            f"Username must be between {HANDLE_MIN_LENGTH}-{HANDLE_MAX_LENGTH} characters"
        )
    if not HANDLE_RE.match(handle):
        raise InvalidRequestError("Username can only contain letters, numbers, and underscores")
    return handle


@dataclass(frozen=True)
class _Match:
    user_id: str
    username: str
    display_name: str | None = None
    avatar_url: str | None = None


def _exact(users: list[dict[str, Any]], handle: str) -> _Match | None:
    wanted = handle.casefold()
    for user in users:
        name = str(user.get("name") or "")
        if name.casefold() == wanted and user.get("id") is not None:
            return _Match(
                user_id=str(user["id"]),
                username=name,
                display_name=user.get("displayName"),
            )
    return None


_Lookup = Callable[[str, float], Awaitable[_Match | None]]


class IdentityResolver:
    """Primary batch lookup, then keyword search, then (optionally) HTML scraping.

    Only exact case-insensitive handle matches are accepted, and the first
    method to produce one wins.
    """

    def __init__(
        self,
        client: RobloxClient,
        *,
        html_fallback: bool | None = None,
        call_timeout: float | None = None,
        min_call_budget: float | None = None,
    ) -> None:
        self.client = client
        self.html_fallback = (
            settings.roblox_html_fallback if html_fallback is None else html_fallback
        )
        self.call_timeout = call_timeout or settings.http_timeout_seconds
        self.min_call_budget = min_call_budget or settings.min_call_budget_seconds

    async def resolve(self, handle: Any, deadline: Deadline | None = None) -> ResolvedIdentity:
        name = clean_handle(handle)
        deadline = deadline or Deadline(settings.request_budget_seconds)

        strategies: list[tuple[ResolutionMethod, _Lookup]] = [
            ("api", self._lookup_batch),
            ("search", self._lookup_search),
        ]
        if self.html_fallback:
            strategies.append(("scrape", self._lookup_scrape))

        completed = False
        rate_limited = False

        for method, lookup in strategies:
            if not deadline.allows(self.min_call_budget):
                logger.warning("Identity lookup budget exhausted before %s lookup", method)
                break
            try:
                match = await lookup(name, deadline.timeout(self.call_timeout))
            except RobloxRateLimitedError:
                rate_limited = True
                logger.warning("Roblox %s lookup rate limited for %r", method, name)
                continue
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning(
                    "Roblox %s lookup failed for %r: %s", method, name, type(exc).__name__
                )
                continue

            completed = True
            if match is not None:
                avatar_url = match.avatar_url or await self._avatar(match.user_id, deadline)
                logger.info("Resolved %r to user %s via %s", name, match.user_id, method)
                return ResolvedIdentity(
                    user_id=match.user_id,
                    username=match.username,
                    display_name=match.display_name,
                    avatar_url=avatar_url,
                    method=method,
                )

        if completed:
            raise IdentityNotFoundError("Roblox user not found")
        if rate_limited:
            raise UpstreamRateLimitedError(
                "Roblox is rate limiting requests. Please try again shortly."
            )
        raise UpstreamUnavailableError("Roblox is currently unavailable. Please try again later.")

    async def _lookup_batch(self, name: str, timeout: float) -> _Match | None:
        users = await self.client.get_users_by_usernames([name], timeout=timeout)
        return _exact(users, name)

    async def _lookup_search(self, name: str, timeout: float) -> _Match | None:
        users = await self.client.search_users(name, limit=10, timeout=timeout)
        return _exact(users, name)

    async def _lookup_scrape(self, name: str, timeout: float) -> _Match | None:
        html = await self.client.fetch_user_search_page(name, timeout=timeout)
        wanted = name.casefold()
        for user in parse_user_search_html(html, self.client.web_url):
            if user.username.casefold() == wanted:
                return _Match(
                    user_id=user.user_id, username=user.username, avatar_url=user.avatar_url
                )
        return None

    async def _avatar(self, user_id: str, deadline: Deadline) -> str:
        """Headshot URL from the thumbnails API, or the constructible fallback."""
        if deadline.allows(self.min_call_budget):
            try:
                url = await self.client.get_avatar_headshot(
                    user_id, timeout=deadline.timeout(self.call_timeout)
                )
                if url:
                    return url
            except (RobloxRateLimitedError, httpx.HTTPError, ValueError) as exc:
                logger.info("Avatar lookup failed for %s: %s", user_id, type(exc).__name__)
        return fallback_avatar_url(user_id, self.client.web_url)

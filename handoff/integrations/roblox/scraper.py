"""Best-effort parsing of the Roblox user-search HTML page.

This depends on undocumented markup that changes without notice. It is only
used as a last resort behind ``ROBLOX_HTML_FALLBACK`` and only exact handle
matches are ever accepted from it.
"""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class ScrapedUser:
    user_id: str
    username: str
    avatar_url: str | None


# Each tuple: (user id, avatar, username). Matches are paired by position.
_PATTERN_SETS: list[tuple[re.Pattern[str], re.Pattern[str], re.Pattern[str]]] = [
    (
        re.compile(r'href="/users/(\d+)/profile"'),
        re.compile(r'<img[^>]+src="([^"]*headshot[^"]*)"[^>]*>'),
        re.compile(r'class="[^"]*username[^"]*"[^>]*>([^<]+)<'),
    ),
    (
        re.compile(r"/users/(\d+)/profile"),
        re.compile(r'data-src="([^"]+)"'),
        re.compile(r'"DisplayName":"([^"]+)"'),
    ),
]


def _absolute(url: str, web_url: str) -> str:
    if url.startswith("//"):
        return f"https:{url}"
    if not url.startswith("http"):
        return f"{web_url.rstrip('/')}/{url.lstrip('/')}"
    return url


def parse_user_search_html(html: str, web_url: str) -> list[ScrapedUser]:
    """Extract user entries from the first pattern set that yields any."""
    for id_re, avatar_re, name_re in _PATTERN_SETS:
        ids = id_re.findall(html)
        names = [n.strip().lstrip("@") for n in name_re.findall(html)]
        if not ids or not names:
            continue
        avatars = avatar_re.findall(html)
        users = []
        for index in range(min(len(ids), len(names))):
            avatar = avatars[index] if index < len(avatars) else None
            if avatar and "undefined" in avatar:
                avatar = None
            users.append(
                ScrapedUser(
                    user_id=ids[index],
                    username=names[index],
                    avatar_url=_absolute(avatar, web_url) if avatar else None,
                )
            )
        return users
    return []

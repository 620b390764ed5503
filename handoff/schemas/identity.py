"""Roblox identity schemas."""

from typing import Literal

from handoff.schemas.common import BaseSchema

ResolutionMethod = Literal["api", "search", "scrape"]


class ResolvedIdentity(BaseSchema):
    """Canonical identity for a handle; ``username`` keeps the provider's casing."""

    user_id: str
    username: str
    display_name: str | None = None
    avatar_url: str
    method: ResolutionMethod
    verified: bool = True

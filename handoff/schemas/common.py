"""Common Pydantic schemas used across the API."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema with common configuration.

    Wire format is camelCase (``orderNumber``); Python attributes stay
    snake_case. Either spelling is accepted on input.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self, *, exclude_none: bool = False) -> dict[str, object]:
        """Serialize with camelCase keys, JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=exclude_none)


class HealthResponse(BaseSchema):
    """Health check response schema."""

    status: str
    version: str
    environment: str
    checks: dict[str, str]


class ErrorResponse(BaseSchema):
    """Error response schema."""

    error: str
    detail: str | None = None
    code: str | None = None

"""Application error taxonomy.

Every error a caller can see is an ``AppError`` subclass carrying its HTTP
status, a stable machine-readable ``code`` and a human message. The exception
handlers in ``handoff.main`` render them as ``ErrorResponse`` bodies.
"""

from typing import Any


class AppError(Exception):
    """Base class for errors rendered as structured JSON responses."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.extra = extra or {}


# Client input errors (400)


class InvalidRequestError(AppError):
    status_code = 400
    code = "invalid_request"


# Resolution outcomes


class OrderNotFoundError(AppError):
    status_code = 404
    code = "order_not_found"


class OrderOwnerMismatchError(AppError):
    """The order exists but belongs to a different email address."""

    status_code = 400
    code = "email_mismatch"


class OrderIneligibleError(AppError):
    status_code = 400
    code = "order_ineligible"


class IdentityNotFoundError(AppError):
    status_code = 404
    code = "user_not_found"


# Upstream faults


class UpstreamRateLimitedError(AppError):
    status_code = 429
    code = "upstream_rate_limited"


class UpstreamUnavailableError(AppError):
    status_code = 502
    code = "upstream_unavailable"


class OrderStoreUnavailableError(AppError):
    """Every call to the order store failed before a response arrived."""

    status_code = 500
    code = "order_store_unavailable"


class ConfigurationError(AppError):
    """Missing or rejected credentials. The message never includes secrets."""

    status_code = 500
    code = "configuration_error"


class RegistrationFailedError(AppError):
    status_code = 500
    code = "registration_failed"

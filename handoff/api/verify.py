"""The single verification endpoint used by the delivery widget."""

import logging
from typing import Any, TypeVar

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from handoff.core.config import settings
from handoff.core.deadline import Deadline
from handoff.core.deps import IdentityResolverDep, OrderServiceDep, RegistrationServiceDep
from handoff.core.exceptions import InvalidRequestError
from handoff.schemas.order import OrderVerificationRequest
from handoff.schemas.registration import RegistrationRequest
from handoff.schemas.request import Action, resolve_action

logger = logging.getLogger(__name__)

router = APIRouter()

M = TypeVar("M", bound=BaseModel)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise InvalidRequestError("Request body must be valid JSON") from None


def _parse(model: type[M], body: dict[str, Any]) -> M:
    """Validate ``body`` against ``model``; field errors become a 400."""
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise InvalidRequestError("Missing or invalid fields", detail=problems) from None


@router.options("/verify", include_in_schema=False)
async def verify_preflight() -> Response:
    """CORS preflight; headers are added by the CORS middleware."""
    return Response(status_code=200)


@router.post("/verify")
async def verify(
    request: Request,
    orders: OrderServiceDep,
    identities: IdentityResolverDep,
    registrations: RegistrationServiceDep,
) -> JSONResponse:
    """Dispatch ``verify_order``, ``verify_username`` or ``register_delivery``.

    The action comes from the ``action`` field, or is inferred from which of
    ``orderNumber``+``email``, ``username`` or ``deliveryData`` is present.
    """
    deadline = Deadline(settings.request_budget_seconds)
    body = await _read_json(request)
    action = resolve_action(body)
    logger.info("Handling %s", action.value)

    if action is Action.VERIFY_ORDER:
        order_request = _parse(OrderVerificationRequest, body)
        order = await orders.verify(order_request.order_number, order_request.email, deadline)
        return JSONResponse(order.to_wire())

    if action is Action.VERIFY_USERNAME:
        # The resolver validates the handle before any network call
        identity = await identities.resolve(body.get("username"), deadline)
        return JSONResponse(identity.to_wire(exclude_none=True))

    registration_request = _parse(RegistrationRequest, body)
    result = await registrations.register(registration_request.delivery_data)
    return JSONResponse(
        result.to_wire(exclude_none=True),
        status_code=200 if result.synced else 202,
    )

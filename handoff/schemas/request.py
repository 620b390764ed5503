"""Decoding the action carried by a ``POST /api/verify`` body."""

import enum
from typing import Any

from handoff.core.exceptions import InvalidRequestError


class Action(str, enum.Enum):
    """Operations served by the verify endpoint."""

    VERIFY_ORDER = "verify_order"
    VERIFY_USERNAME = "verify_username"
    REGISTER_DELIVERY = "register_delivery"


# Field-presence patterns, checked when no explicit ``action`` is given.
# A body must match exactly one of them.
_FIELD_PATTERNS: dict[Action, tuple[str, ...]] = {
    Action.VERIFY_ORDER: ("orderNumber", "email"),
    Action.VERIFY_USERNAME: ("username",),
    Action.REGISTER_DELIVERY: ("deliveryData",),
}

_RECOGNIZED_FIELDS = {"action", *(f for fields in _FIELD_PATTERNS.values() for f in fields)}


def _present(body: dict[str, Any], field: str) -> bool:
    return body.get(field) is not None


def resolve_action(body: Any) -> Action:
    """Return the action for a request body.

    An explicit ``action`` tag wins. Otherwise the action is inferred from
    which field pattern is present; bodies matching none or several patterns
    are rejected rather than guessed.
    """
    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    tag = body.get("action")
    if tag is not None:
        try:
            return Action(tag)
        except ValueError:
            allowed = ", ".join(a.value for a in Action)
            raise InvalidRequestError(
                f"Unknown action '{tag}'",
                detail=f"Expected one of: {allowed}",
            ) from None

    matches = [
        action
        for action, fields in _FIELD_PATTERNS.items()
        if all(_present(body, f) for f in fields)
    ]
    if len(matches) == 1:
        return matches[0]

    received = sorted(f for f in body if _present(body, f) and f in _RECOGNIZED_FIELDS)
    ignored = sorted(f for f in body if f not in _RECOGNIZED_FIELDS)
    expected = " | ".join("+".join(fields) for fields in _FIELD_PATTERNS.values())
    parts = [f"Recognized fields: {', '.join(received) or 'none'}."]
    if ignored:
        parts.append(f"Unrecognized fields: {', '.join(ignored)}.")
    parts.append(f"Expected exactly one of: {expected}.")

    if matches:
        raise InvalidRequestError(
            "Ambiguous request: several actions match", detail=" ".join(parts)
        )
    raise InvalidRequestError("Could not determine the requested action", detail=" ".join(parts))

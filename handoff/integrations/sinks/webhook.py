"""Generic webhook sink with HMAC-signed JSON payloads."""

import base64
import hashlib
import hmac
import json

from handoff.integrations.sinks.base import HttpRecorder
from handoff.schemas.registration import RegistrationRecord

SIGNATURE_HEADER = "X-Handoff-Signature"
EVENT_NAME = "delivery.registered"


def sign_payload(data: bytes, secret: str) -> str:
    """Base64 HMAC-SHA256 of the raw body, as sent in ``X-Handoff-Signature``.

    Args:
        data: The raw request body bytes.
        secret: The shared webhook secret.
    """
    return base64.b64encode(
        hmac.new(
            secret.encode("utf-8"),
            data,
            hashlib.sha256,
        ).digest()
    ).decode("utf-8")


def verify_signature(data: bytes, signature: str, secret: str) -> bool:
    """Receiver-side check of a signed payload."""
    return hmac.compare_digest(sign_payload(data, secret), signature)


class WebhookRecorder(HttpRecorder):
    name = "webhook"

    def __init__(self, url: str, *, secret: str = "", timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)
        self.url = url
        self.secret = secret

    async def _write(self, record: RegistrationRecord) -> None:
        body = json.dumps(
            {"event": EVENT_NAME, "registration": record.model_dump(mode="json", by_alias=True)},
            separators=(",", ":"),
        ).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers[SIGNATURE_HEADER] = sign_payload(body, self.secret)

        await self._post(self.url, headers=headers, content=body)

"""Firestore document sink (REST API)."""

from typing import Any
from urllib.parse import quote

from handoff.integrations.sinks.base import HttpRecorder
from handoff.schemas.registration import RegistrationRecord

FIRESTORE_API_URL = "https://firestore.googleapis.com/v1"


def to_firestore_value(value: Any) -> dict[str, Any]:
    """Encode a JSON value as a Firestore typed ``Value``."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, dict):
        return {"mapValue": {"fields": {k: to_firestore_value(v) for k, v in value.items()}}}
    if isinstance(value, list):
        return {"arrayValue": {"values": [to_firestore_value(v) for v in value]}}
    return {"stringValue": str(value)}


class FirestoreRecorder(HttpRecorder):
    """Adds one document per registration, keyed by the registration id."""

    name = "firestore"

    def __init__(
        self,
        project_id: str,
        collection: str,
        *,
        access_token: str = "",
        api_key: str = "",
        timeout: float | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self.documents_url = (
            f"{FIRESTORE_API_URL}/projects/{project_id}/databases/(default)/documents/"
            f"{quote(collection, safe='')}"
        )
        self.access_token = access_token
        self.api_key = api_key

    async def _write(self, record: RegistrationRecord) -> None:
        document = record.model_dump(mode="json", by_alias=True)
        params = {"documentId": record.registration_id}
        if self.api_key:
            params["key"] = self.api_key
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        await self._post(
            self.documents_url,
            headers=headers,
            params=params,
            json={"fields": {k: to_firestore_value(v) for k, v in document.items()}},
        )

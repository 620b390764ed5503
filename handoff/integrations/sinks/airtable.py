"""Airtable sink: one record per registration."""

from urllib.parse import quote

from handoff.integrations.sinks.base import HttpRecorder
from handoff.schemas.registration import RegistrationRecord

AIRTABLE_API_URL = "https://api.airtable.com/v0"


class AirtableRecorder(HttpRecorder):
    name = "airtable"

    def __init__(
        self,
        api_key: str,
        base_id: str,
        table: str,
        *,
        timeout: float | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self.table_url = f"{AIRTABLE_API_URL}/{base_id}/{quote(table, safe='')}"
        self.api_key = api_key

    async def _write(self, record: RegistrationRecord) -> None:
        await self._post(
            self.table_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json={"records": [{"fields": record.flat_fields()}], "typecast": True},
        )

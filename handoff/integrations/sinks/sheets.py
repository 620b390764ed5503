"""Google Sheets sink: one appended row per registration."""

from urllib.parse import quote

from handoff.integrations.sinks.base import HttpRecorder
from handoff.schemas.registration import RegistrationRecord

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"


class SheetsRecorder(HttpRecorder):
    name = "sheets"

    def __init__(
        self,
        spreadsheet_id: str,
        sheet_range: str,
        access_token: str,
        *,
        timeout: float | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self.append_url = (
            f"{SHEETS_API_URL}/{spreadsheet_id}/values/{quote(sheet_range, safe='')}:append"
        )
        self.access_token = access_token

    async def _write(self, record: RegistrationRecord) -> None:
        row = list(record.flat_fields().values())
        await self._post(
            self.append_url,
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            },
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": [row]},
        )

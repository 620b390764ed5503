"""Pluggable registration sinks, selected by ``REGISTRATION_SINK``."""

import logging

from handoff.core.config import Settings
from handoff.core.database import create_engine, create_session_factory
from handoff.integrations.sinks.airtable import AirtableRecorder
from handoff.integrations.sinks.base import (
    LogRecorder,
    RecorderError,
    RecorderTimeoutError,
    RegistrationRecorder,
)
from handoff.integrations.sinks.database import DatabaseRecorder
from handoff.integrations.sinks.firestore import FirestoreRecorder
from handoff.integrations.sinks.sheets import SheetsRecorder
from handoff.integrations.sinks.webhook import WebhookRecorder
from handoff.schemas.registration import RegistrationRecord

logger = logging.getLogger(__name__)


class UnconfiguredRecorder(RegistrationRecorder):
    """Stands in for a selected sink whose settings are incomplete."""

    def __init__(self, sink: str, missing: list[str]) -> None:
        self.name = sink
        self.missing = missing

    async def _write(self, record: RegistrationRecord) -> None:
        raise RecorderError(f"{self.name} sink is not configured")


def _missing(config: Settings, *fields: str) -> list[str]:
    return [f.upper() for f in fields if not getattr(config, f)]


def build_recorder(config: Settings) -> RegistrationRecorder:
    """Construct the recorder named by ``config.registration_sink``."""
    sink = config.registration_sink
    # A sink request must give up before the registration budget does
    timeout = min(config.http_timeout_seconds, config.registration_timeout_seconds)

    required: dict[str, tuple[str, ...]] = {
        "database": ("database_url",),
        "firestore": ("firestore_project_id", "firestore_collection"),
        "sheets": ("sheets_spreadsheet_id", "sheets_range", "sheets_access_token"),
        "airtable": ("airtable_api_key", "airtable_base_id", "airtable_table"),
        "webhook": ("webhook_url",),
    }
    missing = _missing(config, *required.get(sink, ()))
    if sink == "firestore" and not (config.firestore_access_token or config.firestore_api_key):
        missing.append("FIRESTORE_ACCESS_TOKEN or FIRESTORE_API_KEY")
    if missing:
        logger.error("Registration sink %s missing settings: %s", sink, ", ".join(missing))
        return UnconfiguredRecorder(sink, missing)

    if sink == "database":
        engine = create_engine(config.database_url)
        return DatabaseRecorder(create_session_factory(engine), engine)
    if sink == "firestore":
        return FirestoreRecorder(
            config.firestore_project_id,
            config.firestore_collection,
            access_token=config.firestore_access_token,
            api_key=config.firestore_api_key,
            timeout=timeout,
        )
    if sink == "sheets":
        return SheetsRecorder(
            config.sheets_spreadsheet_id,
            config.sheets_range,
            config.sheets_access_token,
            timeout=timeout,
        )
    if sink == "airtable":
        return AirtableRecorder(
            config.airtable_api_key,
            config.airtable_base_id,
            config.airtable_table,
            timeout=timeout,
        )
    if sink == "webhook":
        return WebhookRecorder(config.webhook_url, secret=config.webhook_secret, timeout=timeout)
    return LogRecorder()


__all__ = [
    "AirtableRecorder",
    "DatabaseRecorder",
    "FirestoreRecorder",
    "LogRecorder",
    "RecorderError",
    "RecorderTimeoutError",
    "RegistrationRecorder",
    "SheetsRecorder",
    "UnconfiguredRecorder",
    "WebhookRecorder",
    "build_recorder",
]

"""SQL database sink using SQLAlchemy async sessions."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from handoff.integrations.sinks.base import RecorderError, RegistrationRecorder
from handoff.models.base import Base
from handoff.models.registration import DeliveryRegistration
from handoff.schemas.registration import RegistrationRecord

logger = logging.getLogger(__name__)


class DatabaseRecorder(RegistrationRecorder):
    """Inserts one ``delivery_registrations`` row per registration."""

    name = "database"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.engine = engine

    async def create_tables(self) -> None:
        if self.engine is None:
            return
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def _write(self, record: RegistrationRecord) -> None:
        try:
            async with self.session_factory() as session:
                session.add(DeliveryRegistration.from_record(record))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to insert registration %s", record.registration_id)
            raise RecorderError("database sink write failed") from exc

    async def aclose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()

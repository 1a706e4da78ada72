"""
Settings Repository

Single-row settings tables. Reads return the oldest row; writes update it
in place or create it on first save.
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from chatdesk.infrastructure.db.models.settings import AITokenSettings, WhatsappSettings


SettingsType = TypeVar("SettingsType", WhatsappSettings, AITokenSettings)


class SingletonSettingsRepository(Generic[SettingsType]):
    """Get/upsert for a table that only ever holds one row."""

    def __init__(self, model: Type[SettingsType], session: AsyncSession):
        self._model = model
        self._session = session

    async def get(self) -> Optional[SettingsType]:
        stmt = select(self._model).order_by(self._model.created_at).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, data: SQLModel) -> SettingsType:
        values = data.model_dump(exclude_unset=True)
        row = await self.get()

        if row is None:
            row = self._model.model_validate(values)
        else:
            for field, value in values.items():
                setattr(row, field, value)

        self._session.add(row)
        await self._session.flush()
        await self._session.refresh(row)
        return row


class WhatsappSettingsRepository(SingletonSettingsRepository[WhatsappSettings]):
    def __init__(self, session: AsyncSession):
        super().__init__(WhatsappSettings, session)


class AITokenSettingsRepository(SingletonSettingsRepository[AITokenSettings]):
    def __init__(self, session: AsyncSession):
        super().__init__(AITokenSettings, session)

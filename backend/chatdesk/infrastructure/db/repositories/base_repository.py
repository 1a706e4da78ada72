"""
Base Repository for ChatDesk

Generic CRUD over a caller-owned session. Repositories flush so that
constraint violations surface inside the gateway call, but the commit is
left to `get_session_context()`.
"""

from typing import Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel


ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=SQLModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=SQLModel)


class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Args:
        model: SQLModel table class
        session: Async session from the current unit of work
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self._model = model
        self._session = session

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        return await self._session.get(self._model, id)

    async def create(self, data: CreateSchemaType) -> ModelType:
        record = self._model.model_validate(data)
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def update(self, id: UUID, data: UpdateSchemaType) -> Optional[ModelType]:
        """Apply only the fields explicitly set on `data`. None if the row is gone."""
        record = await self.get_by_id(id)
        if record is None:
            return None

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(record, field, value)

        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def delete(self, id: UUID) -> bool:
        record = await self.get_by_id(id)
        if record is None:
            return False

        await self._session.delete(record)
        await self._session.flush()
        return True

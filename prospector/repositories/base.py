"""
Base repository with generic data access.

Repositories only flush; the calling service owns the transaction and
decides when to commit or roll back.
"""
import uuid
from typing import TypeVar, Generic, Type, Optional

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository.
    Inherit and specify the model class.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def add(self, db_obj: ModelType) -> ModelType:
        """Stage a new record and flush it so generated values are available."""
        self.session.add(db_obj)
        await self.session.flush()
        return db_obj

    async def get(self, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by ID."""
        return await self.session.get(self.model, id)

    async def delete(self, db_obj: ModelType) -> None:
        """Delete a record."""
        await self.session.delete(db_obj)
        await self.session.flush()


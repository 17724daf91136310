"""
SQLAlchemy-backed repository used when DATABASE_URL is set.
"""
from typing import List, Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smarty.database import Base
from smarty.repositories.base import Repository, T


class SqlRepository(Repository[T]):
    """Maps pydantic entities onto a table whose columns share their field names."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        row_model: Type[Base],
        schema: Type[T],
    ):
        self.session_factory = session_factory
        self.row_model = row_model
        self.schema = schema

    async def get(self, entity_id: str) -> Optional[T]:
        async with self.session_factory() as session:
            row = await session.get(self.row_model, entity_id)
            return self.schema.model_validate(row) if row is not None else None

    async def list(self, owner_id: Optional[str] = None) -> List[T]:
        query = select(self.row_model)
        if owner_id is not None:
            query = query.where(self.row_model.user_id == owner_id)
        query = query.order_by(self.row_model.created_at.asc())

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [self.schema.model_validate(row) for row in result.scalars().all()]

    async def put(self, entity: T) -> T:
        async with self.session_factory() as session:
            await session.merge(self.row_model(**entity.model_dump()))
            await session.commit()
        return entity

    async def delete(self, entity_id: str) -> bool:
        async with self.session_factory() as session:
            row = await session.get(self.row_model, entity_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

"""
Repository interface shared by the in-memory and SQL stores.

Entities are pydantic schemas keyed by a string ``id`` and scoped to an
owner through ``user_id``.
"""
from abc import ABC, abstractmethod
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class Repository(ABC, Generic[T]):
    """Volatile or durable key-value table of entities keyed by id."""

    @abstractmethod
    async def get(self, entity_id: str) -> Optional[T]:
        ...

    @abstractmethod
    async def list(self, owner_id: Optional[str] = None) -> List[T]:
        """Entities in insertion order, optionally limited to one owner."""
        ...

    @abstractmethod
    async def put(self, entity: T) -> T:
        """Insert or replace by id."""
        ...

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """Remove by id; False when nothing was stored under it."""
        ...

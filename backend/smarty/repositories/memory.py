"""
In-memory repository. Data lives for the life of the process.
"""
from typing import Dict, List, Optional

from smarty.repositories.base import Repository, T


class InMemoryRepository(Repository[T]):

    def __init__(self):
        self._items: Dict[str, T] = {}

    async def get(self, entity_id: str) -> Optional[T]:
        item = self._items.get(entity_id)
        return item.model_copy() if item is not None else None

    async def list(self, owner_id: Optional[str] = None) -> List[T]:
        return [
            item.model_copy()
            for item in self._items.values()
            if owner_id is None or getattr(item, "user_id", None) == owner_id
        ]

    async def put(self, entity: T) -> T:
        self._items[entity.id] = entity.model_copy()
        return entity

    async def delete(self, entity_id: str) -> bool:
        return self._items.pop(entity_id, None) is not None

    def clear(self) -> None:
        self._items.clear()

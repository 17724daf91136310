"""
Category service.

Names are unique per owner, compared case-insensitively. Deleting a category
leaves notes that reference it untouched.
"""
import uuid
from typing import List, Optional, Sequence

from fastapi import HTTPException, status

from smarty.repositories.base import Repository
from smarty.schemas.category import Category, CategoryCreate, CategoryUpdate
from smarty.schemas.common import utcnow
from smarty.storage import Storage


class CategoryService:

    def __init__(self, storage: Storage, user_id: str):
        self.storage = storage
        self.repo: Repository[Category] = storage.categories
        self.user_id = user_id

    async def seed_defaults(self, names: Sequence[str]) -> None:
        """Give a new owner the starter categories, once."""
        if self.user_id in self.storage.seeded_owners:
            return
        self.storage.seeded_owners.add(self.user_id)

        existing = await self.repo.list(self.user_id)
        if existing:
            return
        for name in names:
            await self._insert(name)

    async def list_categories(self) -> List[Category]:
        return await self.repo.list(self.user_id)

    async def _find_by_name(self, name: str) -> Optional[Category]:
        wanted = name.lower()
        for category in await self.list_categories():
            if category.name.lower() == wanted:
                return category
        return None

    async def _insert(self, name: str, color: Optional[str] = None) -> Category:
        now = utcnow()
        category = Category(
            id=str(uuid.uuid4()),
            name=name,
            color=color,
            user_id=self.user_id,
            created_at=now,
            updated_at=now,
        )
        await self.repo.put(category)
        return category

    async def get_owned(self, category_id: Optional[str]) -> Category:
        if not category_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category ID is required",
            )
        category = await self.repo.get(category_id)
        if category is None or category.user_id != self.user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found",
            )
        return category

    def _clean_name(self, name: Optional[str]) -> str:
        if name is None or not name.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category name is required",
            )
        return name.strip()

    async def create_category(self, data: CategoryCreate) -> Category:
        name = self._clean_name(data.name)
        if await self._find_by_name(name):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category already exists",
            )
        return await self._insert(name, data.color)

    async def update_category(self, data: CategoryUpdate) -> Category:
        category = await self.get_owned(data.id)
        changes = {"updated_at": max(utcnow(), category.updated_at)}

        if data.name is not None:
            name = self._clean_name(data.name)
            clash = await self._find_by_name(name)
            if clash is not None and clash.id != category.id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Category already exists",
                )
            changes["name"] = name
        if data.color is not None:
            changes["color"] = data.color

        updated = category.model_copy(update=changes)
        await self.repo.put(updated)
        return updated

    async def delete_category(self, category_id: Optional[str]) -> None:
        await self.get_owned(category_id)
        await self.repo.delete(category_id)

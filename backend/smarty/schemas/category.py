"""
Category schemas.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import Field, field_validator

from smarty.schemas.common import CamelModel, ensure_utc, utcnow


class CategoryCreate(CamelModel):
    name: Optional[str] = None
    color: Optional[str] = None


class CategoryUpdate(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    color: Optional[str] = None


class CategoryDelete(CamelModel):
    id: Optional[str] = None


class Category(CamelModel):
    id: str
    name: str
    color: Optional[str] = None
    user_id: Optional[str] = None
    # Some backends omit timestamps on categories
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class CategoryListResponse(CamelModel):
    categories: List[Category]


class CategoryEnvelope(CamelModel):
    category: Category

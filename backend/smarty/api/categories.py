"""
Category endpoints. Same body-carries-id convention as notes.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status

from smarty.api.deps import get_category_service
from smarty.config import settings
from smarty.schemas.category import (
    CategoryCreate,
    CategoryDelete,
    CategoryEnvelope,
    CategoryListResponse,
    CategoryUpdate,
)
from smarty.schemas.common import MessageResponse
from smarty.services.categories import CategoryService

router = APIRouter()


@router.get("", response_model=CategoryListResponse)
async def list_categories(service: CategoryService = Depends(get_category_service)):
    """List the caller's categories, seeding the defaults on first use."""
    if settings.seed_default_categories:
        await service.seed_defaults(settings.default_categories)
    return CategoryListResponse(categories=await service.list_categories())


@router.post("", response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
):
    """Create a category."""
    return CategoryEnvelope(category=await service.create_category(category_data))


@router.put("", response_model=CategoryEnvelope)
async def update_category(
    category_data: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
):
    """Rename or recolor a category."""
    return CategoryEnvelope(category=await service.update_category(category_data))


@router.delete("", response_model=MessageResponse)
async def delete_category(
    category_data: Optional[CategoryDelete] = None,
    service: CategoryService = Depends(get_category_service),
):
    """Delete a category. Notes that point at it are left as they are."""
    await service.delete_category(category_data.id if category_data else None)
    return MessageResponse(message="Category deleted.")

from fastapi import APIRouter, Depends
import logging

from catalog_admin.api.dependencies import category_list_query, get_category_manager
from catalog_admin.schemas.category import (
    CategoryCreate,
    CategoryListQuery,
    CategoryListResponse,
    CategoryMutationResponse,
    CategoryParentsResponse,
    CategoryResponse,
    CategoryUpdate,
)
from catalog_admin.services.category_manager import CategoryManager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=CategoryResponse, status_code=201, summary="Create a category")
async def create_category(
    category: CategoryCreate,
    manager: CategoryManager = Depends(get_category_manager),
):
    """새 카테고리 생성"""
    logger.info("Attempting to create category.", extra={"category_name": category.name, "category_level": category.level})
    return await manager.create(category)


@router.get("/", response_model=CategoryListResponse, summary="List categories")
async def list_categories(
    params: CategoryListQuery = Depends(category_list_query),
    manager: CategoryManager = Depends(get_category_manager),
):
    """카테고리 목록 조회 (_sort, _order, _level, _parentId, _name)"""
    return await manager.list(params)


@router.get("/{category_id}", response_model=CategoryResponse, summary="Get a category by ID")
async def get_category(category_id: str, manager: CategoryManager = Depends(get_category_manager)):
    return await manager.get(category_id)


@router.get("/{category_id}/parents", response_model=CategoryParentsResponse, summary="Get the ancestor chain")
async def get_parent_categories(category_id: str, manager: CategoryManager = Depends(get_category_manager)):
    """상위 카테고리 목록 (최상위부터)"""
    return {"data": await manager.ancestors(category_id)}


@router.patch("/{category_id}", response_model=CategoryMutationResponse, summary="Update a category")
async def update_category(
    category_id: str,
    category: CategoryUpdate,
    manager: CategoryManager = Depends(get_category_manager),
):
    logger.info("Attempting to update category.", extra={
        "category_id": category_id,
        "fields": sorted(category.model_fields_set),
    })
    updated = await manager.update(category_id, category)
    return {"message": "Category updated successfully", "data": updated}


@router.delete("/{category_id}", response_model=CategoryMutationResponse, summary="Delete a category")
async def delete_category(category_id: str, manager: CategoryManager = Depends(get_category_manager)):
    logger.info("Attempting to delete category.", extra={"category_id": category_id})
    deleted = await manager.delete(category_id)
    return {"message": f"Category \"{deleted['name']}\" deleted successfully", "data": deleted}

from fastapi import APIRouter, Depends
import logging

from catalog_admin.api.dependencies import get_product_aggregator, product_list_query
from catalog_admin.schemas.product import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    ProductCreate,
    ProductListQuery,
    ProductListResponse,
    ProductMutationResponse,
    ProductResponse,
    ProductUpdate,
)
from catalog_admin.services.product_aggregator import ProductAggregator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=ProductResponse, status_code=201, summary="Create a new product")
async def create_product(product: ProductCreate, aggregator: ProductAggregator = Depends(get_product_aggregator)):
    """새 상품 생성"""
    logger.info("Attempting to create product.", extra={"product_name": product.name, "sku": product.sku})
    return await aggregator.create(product)


@router.get("/", response_model=ProductListResponse, summary="List products with variant summaries")
async def list_products(
    params: ProductListQuery = Depends(product_list_query),
    aggregator: ProductAggregator = Depends(get_product_aggregator),
):
    """상품 목록: 대표 variant, variant 수, 색상 목록 포함"""
    return await aggregator.list(params)


@router.post("/bulk-delete", response_model=BulkDeleteResponse, summary="Delete several products and their variants")
async def bulk_delete_products(
    request: BulkDeleteRequest,
    aggregator: ProductAggregator = Depends(get_product_aggregator),
):
    logger.info("Attempting to bulk delete products.", extra={"requested": len(request.ids)})
    result = await aggregator.bulk_delete(request)
    return {"message": "Products deleted successfully", **result}


@router.get("/{product_id}", response_model=ProductResponse, summary="Get a specific product by ID")
async def get_product(product_id: str, aggregator: ProductAggregator = Depends(get_product_aggregator)):
    return await aggregator.get(product_id)


@router.patch("/{product_id}", response_model=ProductMutationResponse, summary="Update an existing product")
async def update_product(
    product_id: str,
    product_update: ProductUpdate,
    aggregator: ProductAggregator = Depends(get_product_aggregator),
):
    logger.info("Attempting to update product.", extra={
        "product_id": product_id,
        "update_fields_count": len(product_update.model_fields_set),
    })
    updated = await aggregator.update(product_id, product_update)
    return {"message": "Product updated successfully", "data": updated}


@router.delete("/{product_id}", response_model=ProductMutationResponse, summary="Delete a product")
async def delete_product(product_id: str, aggregator: ProductAggregator = Depends(get_product_aggregator)):
    logger.info("Attempting to delete product.", extra={"product_id": product_id})
    deleted = await aggregator.delete(product_id)
    return {"message": "Product deleted successfully", "data": deleted}

from typing import List

from fastapi import APIRouter, Depends
import logging

from catalog_admin.api.dependencies import (
    Identity,
    get_current_identity,
    get_variant_query_engine,
    variant_list_query,
)
from catalog_admin.schemas.product import ProductResponse
from catalog_admin.schemas.variant import (
    VariantCategoryQuery,
    VariantColorQuery,
    VariantColorsResponse,
    VariantCreate,
    VariantListQuery,
    VariantListResponse,
    VariantMutationResponse,
    VariantPageResponse,
    VariantResponse,
    VariantSearchQuery,
    VariantUpdate,
)
from catalog_admin.services.variant_query import VariantQueryEngine

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=VariantResponse, status_code=201, summary="Create a product variant")
async def create_variant(variant: VariantCreate, engine: VariantQueryEngine = Depends(get_variant_query_engine)):
    logger.info("Attempting to create product variant.", extra={"product_id": str(variant.product_id), "sku": variant.sku})
    return await engine.create(variant)


@router.get("/", response_model=VariantPageResponse, summary="List product variants")
async def list_variants(
    params: VariantListQuery = Depends(variant_list_query),
    engine: VariantQueryEngine = Depends(get_variant_query_engine),
):
    return await engine.list(params)


@router.get("/recently-viewed", response_model=VariantListResponse, summary="Variants recently viewed by the caller")
async def get_recently_viewed(
    identity: Identity = Depends(get_current_identity),
    engine: VariantQueryEngine = Depends(get_variant_query_engine),
):
    return {"data": await engine.recently_viewed(identity.user_id)}


@router.get("/representative", response_model=VariantListResponse, summary="One representative variant per product")
@router.get("/representativeVariant", response_model=VariantListResponse, include_in_schema=False)
async def get_all_representative_variants(engine: VariantQueryEngine = Depends(get_variant_query_engine)):
    return {"data": await engine.representatives()}


@router.get("/products-unique", response_model=List[ProductResponse], summary="Products that have variants")
async def get_all_unique_products(engine: VariantQueryEngine = Depends(get_variant_query_engine)):
    return await engine.distinct_products()


@router.get("/colors-variant/{variant_id}", response_model=VariantColorsResponse, summary="Colors of a variant's product")
async def get_colors_by_variant(variant_id: str, engine: VariantQueryEngine = Depends(get_variant_query_engine)):
    return await engine.colors_by_variant(variant_id)


@router.post("/colors-product/{product_id}", response_model=VariantColorsResponse, summary="Colors of a product")
async def get_colors_by_product(product_id: str, engine: VariantQueryEngine = Depends(get_variant_query_engine)):
    return await engine.colors_by_product(product_id)


@router.post("/by-color", response_model=VariantPageResponse, summary="Variants of a color across products")
async def get_variants_by_color(
    query: VariantColorQuery,
    engine: VariantQueryEngine = Depends(get_variant_query_engine),
):
    return await engine.by_color(query)


@router.post("/by-category", response_model=VariantPageResponse, summary="Variants of products in a category")
async def get_variants_by_category(
    query: VariantCategoryQuery,
    engine: VariantQueryEngine = Depends(get_variant_query_engine),
):
    return await engine.by_category(query)


@router.post("/search", response_model=VariantPageResponse, summary="Search variants by text and price")
async def search_variants(
    query: VariantSearchQuery,
    engine: VariantQueryEngine = Depends(get_variant_query_engine),
):
    return await engine.search(query)


@router.get("/{variant_id}/related-variants", response_model=VariantListResponse, summary="Other variants of the same product")
async def get_related_variants(variant_id: str, engine: VariantQueryEngine = Depends(get_variant_query_engine)):
    return {"data": await engine.related(variant_id)}


@router.post("/{variant_id}/views", status_code=204, summary="Record a view of a variant")
async def record_variant_view(
    variant_id: str,
    identity: Identity = Depends(get_current_identity),
    engine: VariantQueryEngine = Depends(get_variant_query_engine),
):
    await engine.record_view(identity.user_id, variant_id)


@router.get("/{variant_id}", response_model=VariantResponse, summary="Get a product variant by ID")
async def get_variant(variant_id: str, engine: VariantQueryEngine = Depends(get_variant_query_engine)):
    return await engine.get(variant_id)


@router.patch("/{variant_id}", response_model=VariantMutationResponse, summary="Update a product variant")
async def update_variant(
    variant_id: str,
    variant: VariantUpdate,
    engine: VariantQueryEngine = Depends(get_variant_query_engine),
):
    updated = await engine.update(variant_id, variant)
    return {"message": "Product variant updated successfully", "data": updated}


@router.delete("/{variant_id}", response_model=VariantMutationResponse, summary="Delete a product variant")
async def delete_variant(variant_id: str, engine: VariantQueryEngine = Depends(get_variant_query_engine)):
    logger.info("Attempting to delete product variant.", extra={"variant_id": variant_id})
    deleted = await engine.delete(variant_id)
    return {"message": "Product variant deleted successfully", "data": deleted}

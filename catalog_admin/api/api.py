from fastapi import APIRouter

from catalog_admin.api.endpoints import categories, products, variants

api_router = APIRouter()
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(variants.router, prefix="/variants", tags=["variants"])

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
import asyncio
import logging

from bson import ObjectId
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from catalog_admin.config.database import CATEGORIES, PRODUCT_VARIANTS, PRODUCTS, DocumentStore
from catalog_admin.core.aggregation import available_colors, group_by_product, select_representative
from catalog_admin.core.exceptions import ConflictError, NotFoundError, ValidationError
from catalog_admin.core.query import CREATION_ORDER, contains, page_envelope, sort_spec
from catalog_admin.core.tracing import current_span, traced
from catalog_admin.schemas.common import parse_object_id, parse_payload
from catalog_admin.schemas.product import BulkDeleteRequest, ProductCreate, ProductListQuery, ProductUpdate

logger = logging.getLogger(__name__)


class ProductAggregator:
    def __init__(self, store: DocumentStore):
        self.store = store
        self.tracer = trace.get_tracer("catalog_admin.services.ProductAggregator", "0.1.0")

    async def _require(self, product_id: Any) -> Dict[str, Any]:
        product_oid = parse_object_id(product_id, "product")
        product = await self.store.find_one(PRODUCTS, {"_id": product_oid})
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def _require_category(self, category_id: ObjectId) -> Dict[str, Any]:
        category = await self.store.find_one(CATEGORIES, {"_id": category_id})
        if not category:
            raise NotFoundError("Category does not exist", status_code=400)
        return category

    @traced("service.product.create")
    async def create(self, payload: Union[ProductCreate, Dict[str, Any]]) -> Dict[str, Any]:
        data = parse_payload(ProductCreate, payload)
        span = current_span()
        span.set_attribute("app.product.request.name", data.name)
        span.set_attribute("app.product.request.sku", data.sku)

        await self._require_category(data.category_id)

        now = datetime.now(timezone.utc)
        document = {
            "name": data.name,
            "sku": data.sku,
            "categoryId": data.category_id,
            "representativeVariantId": None,
            "description": data.description,
            "status": data.status,
            "createdAt": now,
            "updatedAt": now,
        }
        product = await self.store.insert_one(PRODUCTS, document)
        span.set_attribute("app.product.id", str(product["_id"]))
        logger.info("Product created.", extra={"product_id": product["_id"], "sku": data.sku})
        return product

    @traced("service.product.list")
    async def list(self, params: Optional[ProductListQuery] = None) -> Dict[str, Any]:
        params = params or ProductListQuery()
        query: Dict[str, Any] = {}
        if params.category_id is not None:
            query["categoryId"] = params.category_id
        if params.name:
            query["name"] = contains(params.name)
        if params.sku:
            query["sku"] = contains(params.sku)
        if params.status is not None:
            query["status"] = params.status

        span = current_span()
        span.set_attribute("app.page", params.page)
        span.set_attribute("app.limit", params.limit)

        total, products = await asyncio.gather(
            self.store.count(PRODUCTS, query),
            self.store.find(
                PRODUCTS, query, sort=sort_spec(params.sort, params.order), skip=params.skip, limit=params.limit
            ),
        )
        enriched = await self._enrich(products)
        logger.debug("Listed products.", extra={"total": total, "page": params.page, "returned": len(enriched)})
        return page_envelope(enriched, total, params.page, params.limit)

    async def _enrich(self, products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """페이지 단위로 variant/카테고리/대표 variant 를 한 번씩 조회해 메모리에서 묶음"""
        if not products:
            return []

        with self.tracer.start_as_current_span("service.product.enrich") as span:
            span.set_attribute("app.products_count", len(products))
            product_ids = [product["_id"] for product in products]
            category_ids = list({product["categoryId"] for product in products if product.get("categoryId")})
            representative_ids = list({
                product["representativeVariantId"] for product in products if product.get("representativeVariantId")
            })

            variants, categories, referenced = await asyncio.gather(
                self.store.find(PRODUCT_VARIANTS, {"productId": {"$in": product_ids}}, sort=CREATION_ORDER),
                self.store.find(CATEGORIES, {"_id": {"$in": category_ids}}),
                self.store.find(PRODUCT_VARIANTS, {"_id": {"$in": representative_ids}}),
            )

            variants_by_product = group_by_product(variants)
            categories_by_id = {category["_id"]: category for category in categories}
            referenced_by_id = {variant["_id"]: variant for variant in referenced}

            enriched = []
            for product in products:
                product_variants = variants_by_product.get(product["_id"], [])
                enriched.append({
                    **product,
                    "category": categories_by_id.get(product.get("categoryId")),
                    "representativeVariant": select_representative(product, product_variants, referenced_by_id),
                    "variantCount": len(product_variants),
                    "availableColors": available_colors(product_variants),
                })
            span.set_attribute("app.variants_count", len(variants))
            span.set_status(Status(StatusCode.OK))
            return enriched

    @traced("service.product.get")
    async def get(self, product_id: Any) -> Dict[str, Any]:
        product = await self._require(product_id)
        category = None
        if product.get("categoryId") is not None:
            category = await self.store.find_one(CATEGORIES, {"_id": product["categoryId"]})
        return {**product, "category": category}

    @traced("service.product.update")
    async def update(self, product_id: Any, payload: Union[ProductUpdate, Dict[str, Any]]) -> Dict[str, Any]:
        data = parse_payload(ProductUpdate, payload)
        product = await self._require(product_id)
        changes = data.model_dump(include=data.model_fields_set, by_alias=True)

        # 필수 필드는 null 로 비울 수 없음
        for field in ("name", "sku", "categoryId", "status"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")

        if changes.get("categoryId") is not None:
            await self._require_category(changes["categoryId"])

        representative_id = changes.get("representativeVariantId")
        if representative_id is not None:
            variant = await self.store.find_one(PRODUCT_VARIANTS, {"_id": representative_id})
            if not variant:
                raise NotFoundError("Representative variant does not exist", status_code=400)
            if variant["productId"] != product["_id"]:
                raise ValidationError("Representative variant belongs to another product")

        changes["updatedAt"] = datetime.now(timezone.utc)
        updated = await self.store.update_one(PRODUCTS, {"_id": product["_id"]}, changes)
        if not updated:
            raise NotFoundError("Product not found")
        logger.info("Product updated.", extra={"product_id": product["_id"], "fields": sorted(changes)})
        return updated

    @traced("service.product.delete")
    async def delete(self, product_id: Any) -> Dict[str, Any]:
        product = await self._require(product_id)

        variant_count = await self.store.count(PRODUCT_VARIANTS, {"productId": product["_id"]})
        if variant_count:
            raise ConflictError(
                f"Cannot delete product \"{product['name']}\": it still has {variant_count} variants",
                details={"productName": product["name"], "variantCount": variant_count},
            )

        await self.store.delete_one(PRODUCTS, {"_id": product["_id"]})
        logger.info("Product deleted.", extra={"product_id": product["_id"], "sku": product.get("sku")})
        return product

    @traced("service.product.bulk_delete")
    async def bulk_delete(self, payload: Union[BulkDeleteRequest, Dict[str, Any]]) -> Dict[str, int]:
        """상품 일괄 삭제. 단건 삭제와 달리 variant 존재 여부를 검사하지 않고 함께 삭제"""
        data = parse_payload(BulkDeleteRequest, payload)
        ids = list(dict.fromkeys(data.ids))
        current_span().set_attribute("app.products.request.count", len(ids))

        deleted_count = await self.store.delete_many(PRODUCTS, {"_id": {"$in": ids}})
        deleted_variant_count = await self.store.delete_many(PRODUCT_VARIANTS, {"productId": {"$in": ids}})
        logger.warning("Products bulk deleted with their variants.", extra={
            "requested": len(ids),
            "deleted_count": deleted_count,
            "deleted_variant_count": deleted_variant_count,
        })
        return {"deletedCount": deleted_count, "deletedVariantCount": deleted_variant_count}

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
import asyncio
import logging

from bson import ObjectId
from opentelemetry import trace
from pymongo import DESCENDING

from catalog_admin.config.database import CATEGORIES, PRODUCT_VARIANTS, PRODUCTS, VIEW_HISTORY, DocumentStore
from catalog_admin.config.settings import settings
from catalog_admin.core.aggregation import available_colors, group_by_product, select_representative
from catalog_admin.core.exceptions import NotFoundError, ValidationError
from catalog_admin.core.query import CREATION_ORDER, contains, page_envelope, sort_spec
from catalog_admin.core.tracing import current_span, traced
from catalog_admin.schemas.common import PageQuery, parse_object_id, parse_payload
from catalog_admin.schemas.variant import (
    VariantCategoryQuery,
    VariantColorQuery,
    VariantCreate,
    VariantListQuery,
    VariantSearchQuery,
    VariantUpdate,
)
from catalog_admin.services.category_manager import CategoryManager

logger = logging.getLogger(__name__)

PRODUCT_CONTEXT_FIELDS = {"name": 1, "sku": 1, "categoryId": 1}


class VariantQueryEngine:
    """variant 컬렉션 기반 조회: 색상/카테고리/검색, 대표 variant, 최근 본 상품"""

    def __init__(self, store: DocumentStore, categories: Optional[CategoryManager] = None):
        self.store = store
        self.categories = categories or CategoryManager(store)
        self.tracer = trace.get_tracer("catalog_admin.services.VariantQueryEngine", "0.1.0")

    async def _require(self, variant_id: Any) -> Dict[str, Any]:
        variant_oid = parse_object_id(variant_id, "variant")
        variant = await self.store.find_one(PRODUCT_VARIANTS, {"_id": variant_oid})
        if not variant:
            raise NotFoundError("Product variant not found")
        return variant

    async def _require_product(self, product_id: ObjectId, status_code: int = 400) -> Dict[str, Any]:
        product = await self.store.find_one(PRODUCTS, {"_id": product_id})
        if not product:
            raise NotFoundError("Product does not exist", status_code=status_code)
        return product

    async def _with_products(self, variants: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """각 variant 에 최소한의 상품 정보(product) 를 붙임"""
        if not variants:
            return []
        product_ids = list({variant["productId"] for variant in variants})
        products = await self.store.find(
            PRODUCTS, {"_id": {"$in": product_ids}}, projection=PRODUCT_CONTEXT_FIELDS
        )
        products_by_id = {product["_id"]: product for product in products}
        return [{**variant, "product": products_by_id.get(variant["productId"])} for variant in variants]

    async def _paginate(self, query: Dict[str, Any], params: PageQuery) -> Dict[str, Any]:
        total, variants = await asyncio.gather(
            self.store.count(PRODUCT_VARIANTS, query),
            self.store.find(
                PRODUCT_VARIANTS, query, sort=sort_spec(params.sort, params.order), skip=params.skip, limit=params.limit
            ),
        )
        span = current_span()
        span.set_attribute("app.variants.total", total)
        return page_envelope(await self._with_products(variants), total, params.page, params.limit)

    async def _category_product_ids(self, category_id: ObjectId, include_descendants: bool) -> List[ObjectId]:
        if include_descendants:
            category_ids = await self.categories.descendant_ids(category_id)
        else:
            category_ids = [category_id]
        products = await self.store.find(PRODUCTS, {"categoryId": {"$in": category_ids}}, projection={"_id": 1})
        return [product["_id"] for product in products]

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    @traced("service.variant.create")
    async def create(self, payload: Union[VariantCreate, Dict[str, Any]]) -> Dict[str, Any]:
        data = parse_payload(VariantCreate, payload)
        await self._require_product(data.product_id)

        now = datetime.now(timezone.utc)
        document = data.model_dump(by_alias=True)
        document["createdAt"] = now
        document["updatedAt"] = now
        variant = await self.store.insert_one(PRODUCT_VARIANTS, document)
        logger.info("Product variant created.", extra={
            "variant_id": variant["_id"],
            "product_id": data.product_id,
            "sku": data.sku,
            "actual_color": data.color.actual_color,
        })
        return variant

    @traced("service.variant.get")
    async def get(self, variant_id: Any) -> Dict[str, Any]:
        variant = await self._require(variant_id)
        return (await self._with_products([variant]))[0]

    @traced("service.variant.list")
    async def list(self, params: Optional[VariantListQuery] = None) -> Dict[str, Any]:
        params = params or VariantListQuery()
        query: Dict[str, Any] = {}
        if params.product_id is not None:
            query["productId"] = params.product_id
        if params.sku:
            query["sku"] = contains(params.sku)
        if params.status is not None:
            query["status"] = params.status
        return await self._paginate(query, params)

    @traced("service.variant.update")
    async def update(self, variant_id: Any, payload: Union[VariantUpdate, Dict[str, Any]]) -> Dict[str, Any]:
        data = parse_payload(VariantUpdate, payload)
        variant = await self._require(variant_id)
        changes = data.model_dump(include=data.model_fields_set, by_alias=True)

        for field, value in changes.items():
            if value is None:
                raise ValidationError(f"{field} cannot be null")

        moved = "productId" in changes and changes["productId"] != variant["productId"]
        if moved:
            await self._require_product(changes["productId"])

        changes["updatedAt"] = datetime.now(timezone.utc)
        updated = await self.store.update_one(PRODUCT_VARIANTS, {"_id": variant["_id"]}, changes)
        if not updated:
            raise NotFoundError("Product variant not found")
        if moved:
            await self.store.update_many(
                PRODUCTS,
                {"_id": variant["productId"], "representativeVariantId": variant["_id"]},
                {"representativeVariantId": None},
            )
        logger.info("Product variant updated.", extra={"variant_id": variant["_id"], "fields": sorted(changes)})
        return updated

    @traced("service.variant.delete")
    async def delete(self, variant_id: Any) -> Dict[str, Any]:
        variant = await self._require(variant_id)
        await self.store.delete_one(PRODUCT_VARIANTS, {"_id": variant["_id"]})
        cleared = await self.store.update_many(
            PRODUCTS, {"representativeVariantId": variant["_id"]}, {"representativeVariantId": None}
        )
        await self.store.delete_many(VIEW_HISTORY, {"variantId": variant["_id"]})
        logger.info("Product variant deleted.", extra={
            "variant_id": variant["_id"],
            "product_id": variant["productId"],
            "cleared_representatives": cleared,
        })
        return variant

    # ------------------------------------------------------------------
    # Colors / related
    # ------------------------------------------------------------------

    async def _colors_of(self, product_id: ObjectId) -> Dict[str, Any]:
        variants = await self.store.find(
            PRODUCT_VARIANTS,
            {"productId": product_id},
            sort=CREATION_ORDER,
            projection={"productId": 1, "color": 1, "createdAt": 1},
        )
        return {"productId": product_id, "data": available_colors(variants, detailed=True)}

    @traced("service.variant.colors_by_variant")
    async def colors_by_variant(self, variant_id: Any) -> Dict[str, Any]:
        variant = await self._require(variant_id)
        return await self._colors_of(variant["productId"])

    @traced("service.variant.colors_by_product")
    async def colors_by_product(self, product_id: Any) -> Dict[str, Any]:
        product_oid = parse_object_id(product_id, "product")
        await self._require_product(product_oid, status_code=404)
        return await self._colors_of(product_oid)

    @traced("service.variant.related")
    async def related(self, variant_id: Any) -> List[Dict[str, Any]]:
        """같은 상품의 다른 variant (다른 색상/sku)"""
        variant = await self._require(variant_id)
        siblings = await self.store.find(
            PRODUCT_VARIANTS,
            {"productId": variant["productId"], "_id": {"$ne": variant["_id"]}},
            sort=CREATION_ORDER,
        )
        current_span().set_attribute("app.variants.related_count", len(siblings))
        return siblings

    # ------------------------------------------------------------------
    # Catalog-wide views
    # ------------------------------------------------------------------

    @traced("service.variant.representatives")
    async def representatives(self) -> List[Dict[str, Any]]:
        """상품마다 대표 variant 하나. variant 가 없는 상품은 제외"""
        products = await self.store.find(PRODUCTS, {}, sort=CREATION_ORDER, projection=PRODUCT_CONTEXT_FIELDS | {
            "representativeVariantId": 1,
            "createdAt": 1,
        })
        if not products:
            return []

        stored_ids = [product["representativeVariantId"] for product in products if product.get("representativeVariantId")]
        stored = await self.store.find(PRODUCT_VARIANTS, {"_id": {"$in": stored_ids}})
        stored_by_id = {variant["_id"]: variant for variant in stored}

        # 대표 variant 가 지정되지 않았거나 가리키는 variant 가 사라진 상품만 가장 오래된 variant 조회
        fallback_ids = [
            product["_id"] for product in products
            if product.get("representativeVariantId") not in stored_by_id
        ]
        fallback_variants = []
        if fallback_ids:
            fallback_variants = await self.store.find(
                PRODUCT_VARIANTS, {"productId": {"$in": fallback_ids}}, sort=CREATION_ORDER
            )
        variants_by_product = group_by_product(fallback_variants)

        representatives = []
        for product in products:
            variant = select_representative(product, variants_by_product.get(product["_id"], []), stored_by_id)
            if variant is not None:
                context = {key: product.get(key) for key in ("_id", "name", "sku", "categoryId")}
                representatives.append({**variant, "product": context})
        return representatives

    @traced("service.variant.distinct_products")
    async def distinct_products(self) -> List[Dict[str, Any]]:
        """variant 가 하나 이상 있는 상품 목록"""
        product_ids = await self.store.distinct(PRODUCT_VARIANTS, "productId")
        if not product_ids:
            return []
        products = await self.store.find(PRODUCTS, {"_id": {"$in": product_ids}}, sort=CREATION_ORDER)
        current_span().set_attribute("app.products.live_count", len(products))
        return products

    # ------------------------------------------------------------------
    # Filters / search
    # ------------------------------------------------------------------

    @traced("service.variant.by_color")
    async def by_color(self, payload: Union[VariantColorQuery, Dict[str, Any]]) -> Dict[str, Any]:
        params = parse_payload(VariantColorQuery, payload)
        query: Dict[str, Any] = {}
        if params.base_color:
            query["color.baseColor"] = params.base_color
        if params.actual_color:
            query["color.actualColor"] = params.actual_color
        if params.color_name:
            query["color.colorName"] = contains(params.color_name)
        if params.status is not None:
            query["status"] = params.status
        return await self._paginate(query, params)

    @traced("service.variant.by_category")
    async def by_category(self, payload: Union[VariantCategoryQuery, Dict[str, Any]]) -> Dict[str, Any]:
        params = parse_payload(VariantCategoryQuery, payload)
        category = await self.store.find_one(CATEGORIES, {"_id": params.category_id})
        if not category:
            raise NotFoundError("Category not found")

        product_ids = await self._category_product_ids(params.category_id, params.include_descendants)
        current_span().set_attribute("app.category.products_count", len(product_ids))
        return await self._paginate({"productId": {"$in": product_ids}}, params)

    @traced("service.variant.search")
    async def search(self, payload: Union[VariantSearchQuery, Dict[str, Any]]) -> Dict[str, Any]:
        params = parse_payload(VariantSearchQuery, payload)
        conditions: List[Dict[str, Any]] = []

        if params.category_id is not None:
            category_product_ids = await self._category_product_ids(params.category_id, include_descendants=True)
            conditions.append({"productId": {"$in": category_product_ids}})

        if params.q:
            pattern = contains(params.q)
            matching_products = await self.store.find(
                PRODUCTS, {"$or": [{"name": pattern}, {"sku": pattern}]}, projection={"_id": 1}
            )
            conditions.append({"$or": [
                {"productId": {"$in": [product["_id"] for product in matching_products]}},
                {"sku": pattern},
                {"color.colorName": pattern},
            ]})

        price: Dict[str, float] = {}
        if params.min_price is not None:
            price["$gte"] = params.min_price
        if params.max_price is not None:
            price["$lte"] = params.max_price
        if price:
            conditions.append({"price": price})

        query = {"$and": conditions} if conditions else {}
        span = current_span()
        span.set_attribute("app.search.conditions", len(conditions))
        if params.q:
            span.set_attribute("app.search.q", params.q)
        return await self._paginate(query, params)

    # ------------------------------------------------------------------
    # View history
    # ------------------------------------------------------------------

    @traced("service.variant.record_view")
    async def record_view(self, user_id: str, variant_id: Any) -> Dict[str, Any]:
        variant = await self._require(variant_id)
        now = datetime.now(timezone.utc)
        query = {"userId": user_id, "variantId": variant["_id"]}

        entry = await self.store.update_one(VIEW_HISTORY, query, {"viewedAt": now})
        if entry is None:
            entry = await self.store.insert_one(VIEW_HISTORY, {**query, "viewedAt": now})
        logger.debug("Variant view recorded.", extra={"user_id": user_id, "variant_id": variant["_id"]})
        return entry

    @traced("service.variant.recently_viewed")
    async def recently_viewed(self, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """최근 본 variant (최신순). 삭제된 variant 는 건너뜀"""
        limit = limit or settings.RECENTLY_VIEWED_LIMIT
        history = await self.store.find(
            VIEW_HISTORY,
            {"userId": user_id},
            sort=[("viewedAt", DESCENDING), ("_id", DESCENDING)],
            limit=limit,
        )
        variant_ids = list(dict.fromkeys(entry["variantId"] for entry in history))
        if not variant_ids:
            return []

        variants = await self.store.find(PRODUCT_VARIANTS, {"_id": {"$in": variant_ids}})
        variants_by_id = {variant["_id"]: variant for variant in variants}
        ordered = [variants_by_id[variant_id] for variant_id in variant_ids if variant_id in variants_by_id]
        return await self._with_products(ordered)

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, Header, Query, Request

from catalog_admin.config.database import DocumentStore
from catalog_admin.core.exceptions import AuthenticationError
from catalog_admin.schemas.category import CategoryListQuery
from catalog_admin.schemas.common import parse_payload
from catalog_admin.schemas.product import ProductListQuery
from catalog_admin.schemas.variant import VariantListQuery
from catalog_admin.services.category_manager import CategoryManager
from catalog_admin.services.product_aggregator import ProductAggregator
from catalog_admin.services.variant_query import VariantQueryEngine


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_category_manager(store: DocumentStore = Depends(get_store)) -> CategoryManager:
    return CategoryManager(store)


def get_product_aggregator(store: DocumentStore = Depends(get_store)) -> ProductAggregator:
    return ProductAggregator(store)


def get_variant_query_engine(
    store: DocumentStore = Depends(get_store),
    categories: CategoryManager = Depends(get_category_manager),
) -> VariantQueryEngine:
    return VariantQueryEngine(store, categories)


@dataclass
class Identity:
    user_id: str


def get_current_identity(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> Identity:
    """인증 게이트웨이가 검증 후 넣어주는 사용자 id 헤더를 읽음"""
    if not x_user_id:
        raise AuthenticationError("Authentication required")
    return Identity(user_id=x_user_id)


def _present(values: Dict[str, Any]) -> Dict[str, Any]:
    # 빈 쿼리 값은 "지정 안 함"
    return {key: value for key, value in values.items() if value not in (None, "")}


def category_list_query(
    sort: Optional[str] = Query(default=None, alias="_sort"),
    order: Optional[str] = Query(default=None, alias="_order"),
    level: Optional[str] = Query(default=None, alias="_level"),
    parent_id: Optional[str] = Query(default=None, alias="_parentId"),
    name: Optional[str] = Query(default=None, alias="_name"),
) -> CategoryListQuery:
    return parse_payload(CategoryListQuery, _present({
        "sort": sort, "order": order, "level": level, "parent_id": parent_id, "name": name,
    }))


def product_list_query(
    limit: Optional[str] = Query(default=None, alias="_limit"),
    page: Optional[str] = Query(default=None, alias="_page"),
    sort: Optional[str] = Query(default=None, alias="_sort"),
    order: Optional[str] = Query(default=None, alias="_order"),
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    name: Optional[str] = Query(default=None, alias="_name"),
    sku: Optional[str] = Query(default=None, alias="_sku"),
    status: Optional[str] = Query(default=None, alias="_status"),
) -> ProductListQuery:
    return parse_payload(ProductListQuery, _present({
        "limit": limit, "page": page, "sort": sort, "order": order,
        "category_id": category_id, "name": name, "sku": sku, "status": status,
    }))


def variant_list_query(
    limit: Optional[str] = Query(default=None, alias="_limit"),
    page: Optional[str] = Query(default=None, alias="_page"),
    sort: Optional[str] = Query(default=None, alias="_sort"),
    order: Optional[str] = Query(default=None, alias="_order"),
    product_id: Optional[str] = Query(default=None, alias="productId"),
    sku: Optional[str] = Query(default=None, alias="_sku"),
    status: Optional[str] = Query(default=None, alias="_status"),
) -> VariantListQuery:
    return parse_payload(VariantListQuery, _present({
        "limit": limit, "page": page, "sort": sort, "order": order,
        "product_id": product_id, "sku": sku, "status": status,
    }))

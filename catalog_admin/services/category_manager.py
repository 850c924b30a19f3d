from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
import logging

from bson import ObjectId
from opentelemetry import trace

from catalog_admin.config.database import CATEGORIES, PRODUCTS, DocumentStore
from catalog_admin.core.exceptions import ConflictError, HierarchyError, NotFoundError
from catalog_admin.core.query import contains, sort_spec
from catalog_admin.core.tracing import current_span, traced
from catalog_admin.schemas.category import (
    MAX_CATEGORY_LEVEL,
    CategoryCreate,
    CategoryListQuery,
    CategoryUpdate,
)
from catalog_admin.schemas.common import parse_object_id, parse_payload

logger = logging.getLogger(__name__)

EXAMPLE_PRODUCTS_LIMIT = 5


class CategoryManager:
    """3단계 카테고리 트리 관리.

    쓰기마다 바로 위 부모만 검사한다. 모든 쓰기에서 불변식이 지켜지므로
    트리 전체에 대해서도 성립한다.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self.tracer = trace.get_tracer("catalog_admin.services.CategoryManager", "0.1.0")

    async def _find(self, category_id: ObjectId) -> Optional[Dict[str, Any]]:
        return await self.store.find_one(CATEGORIES, {"_id": category_id})

    async def _require(self, category_id: Any) -> Dict[str, Any]:
        category_oid = parse_object_id(category_id, "category")
        category = await self._find(category_oid)
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def _check_hierarchy(self, parent_id: Optional[ObjectId], level: int) -> Optional[Dict[str, Any]]:
        """부모/레벨 조합 검증. 검증된 부모 문서 반환"""
        if parent_id is None:
            if level != 1:
                raise HierarchyError("A category without parentId must have level 1")
            return None

        parent = await self._find(parent_id)
        if not parent:
            raise NotFoundError("Parent category does not exist", status_code=400)
        if parent["level"] >= MAX_CATEGORY_LEVEL:
            raise HierarchyError(f"Cannot create a child category under a level {MAX_CATEGORY_LEVEL} category")
        if level != parent["level"] + 1:
            raise HierarchyError("Level must be exactly one greater than the parent's level")
        return parent

    @traced("service.category.create")
    async def create(self, payload: Union[CategoryCreate, Dict[str, Any]]) -> Dict[str, Any]:
        data = parse_payload(CategoryCreate, payload)
        span = current_span()
        span.set_attribute("app.category.request.name", data.name)
        span.set_attribute("app.category.request.level", data.level)

        await self._check_hierarchy(data.parent_id, data.level)

        now = datetime.now(timezone.utc)
        document = {
            "name": data.name,
            "level": data.level,
            "parentId": data.parent_id,
            "createdAt": now,
            "updatedAt": now,
        }
        category = await self.store.insert_one(CATEGORIES, document)
        span.set_attribute("app.category.id", str(category["_id"]))
        logger.info("Category created.", extra={
            "category_id": category["_id"],
            "category_name": data.name,
            "category_level": data.level,
            "parent_id": data.parent_id,
        })
        return category

    @traced("service.category.get")
    async def get(self, category_id: Any) -> Dict[str, Any]:
        return await self._require(category_id)

    @traced("service.category.list")
    async def list(self, params: Optional[CategoryListQuery] = None) -> Dict[str, Any]:
        params = params or CategoryListQuery()
        query: Dict[str, Any] = {}
        if params.level is not None:
            query["level"] = params.level
        if params.parent_id is not None:
            query["parentId"] = params.parent_id
        if params.name:
            query["name"] = contains(params.name)

        categories = await self.store.find(CATEGORIES, query, sort=sort_spec(params.sort, params.order))
        logger.debug("Retrieved categories.", extra={"categories_count": len(categories)})
        return {"data": categories, "total": len(categories)}

    @traced("service.category.update")
    async def update(self, category_id: Any, payload: Union[CategoryUpdate, Dict[str, Any]]) -> Dict[str, Any]:
        data = parse_payload(CategoryUpdate, payload)
        existing = await self._require(category_id)
        changes = data.model_dump(include=data.model_fields_set, by_alias=True)

        if "parentId" in changes or "level" in changes:
            parent_id = changes["parentId"] if "parentId" in changes else existing.get("parentId")
            level = changes["level"] if "level" in changes else existing["level"]
            if level is None:
                raise HierarchyError("Level cannot be cleared")
            if parent_id == existing["_id"]:
                raise HierarchyError("A category cannot be its own parent")

            await self._check_hierarchy(parent_id, level)

            # 자식이 있는 카테고리의 레벨이 바뀌면 자식들의 레벨 관계가 깨짐
            if level != existing["level"]:
                children_count = await self.store.count(CATEGORIES, {"parentId": existing["_id"]})
                if children_count:
                    raise HierarchyError(
                        f"Cannot change the level of \"{existing['name']}\" while it has {children_count} child categories"
                    )
            changes["parentId"] = parent_id
            changes["level"] = level

        if "name" in changes and changes["name"] is None:
            del changes["name"]
        changes["updatedAt"] = datetime.now(timezone.utc)

        category = await self.store.update_one(CATEGORIES, {"_id": existing["_id"]}, changes)
        if not category:
            raise NotFoundError("Category not found")
        logger.info("Category updated.", extra={"category_id": existing["_id"], "fields": sorted(changes)})
        return category

    @traced("service.category.delete")
    async def delete(self, category_id: Any) -> Dict[str, Any]:
        category = await self._require(category_id)
        name = category["name"]

        children = await self.store.find(CATEGORIES, {"parentId": category["_id"]}, projection={"name": 1})
        if children:
            children_names = [child["name"] for child in children]
            message = (
                f"Cannot delete category \"{name}\": it still has {len(children)} child categories: "
                f"{', '.join(children_names)}"
            )
            raise ConflictError(message, details={
                "categoryName": name,
                "childrenCount": len(children),
                "childrenNames": children_names,
            })

        products_count = await self.store.count(PRODUCTS, {"categoryId": category["_id"]})
        if products_count:
            products = await self.store.find(
                PRODUCTS, {"categoryId": category["_id"]}, projection={"name": 1}, limit=EXAMPLE_PRODUCTS_LIMIT
            )
            raise ConflictError(
                f"Cannot delete category \"{name}\": it still has {products_count} products.",
                error=f"Category \"{name}\" still contains products.",
                details={
                    "categoryName": name,
                    "productsCount": products_count,
                    "exampleProducts": [product["name"] for product in products],
                },
            )

        await self.store.delete_one(CATEGORIES, {"_id": category["_id"]})
        logger.info("Category deleted.", extra={"category_id": category["_id"], "category_name": name})
        return category

    @traced("service.category.ancestors")
    async def ancestors(self, category_id: Any) -> List[Dict[str, Any]]:
        """조상 목록 (루트 먼저). 레벨 제한상 최대 2단계"""
        current = await self._require(category_id)
        chain: List[Dict[str, Any]] = []

        while current.get("parentId") is not None:
            if len(chain) >= MAX_CATEGORY_LEVEL - 1:
                raise HierarchyError("Category chain exceeds the maximum depth")
            parent = await self._find(current["parentId"])
            if not parent:
                raise HierarchyError("Parent category does not exist")
            chain.append(parent)
            current = parent

        chain.reverse()
        return chain

    async def descendant_ids(self, category_id: ObjectId) -> List[ObjectId]:
        """자신과 모든 하위 카테고리 id (최대 2단계 아래)"""
        ids = [category_id]
        frontier = [category_id]
        for _ in range(MAX_CATEGORY_LEVEL - 1):
            children = await self.store.find(CATEGORIES, {"parentId": {"$in": frontier}}, projection={"_id": 1})
            frontier = [child["_id"] for child in children]
            if not frontier:
                break
            ids.extend(frontier)
        return ids

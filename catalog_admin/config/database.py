from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from catalog_admin.config.settings import Settings

logger = logging.getLogger(__name__)

CATEGORIES = "categories"
PRODUCTS = "products"
PRODUCT_VARIANTS = "productVariants"
VIEW_HISTORY = "viewHistory"

SortSpec = Sequence[Tuple[str, int]]

# 컬렉션별 인덱스 (필터/정렬 대상 필드)
INDEXES: Dict[str, List[Any]] = {
    CATEGORIES: ["parentId", "level"],
    PRODUCTS: ["categoryId", "sku", "status", "createdAt"],
    PRODUCT_VARIANTS: ["productId", "sku", "price", "color.baseColor", "status", "sizes.stock"],
    VIEW_HISTORY: [[("userId", ASCENDING), ("viewedAt", DESCENDING)]],
}


class DocumentStore(Protocol):
    """카탈로그 코어가 사용하는 문서 저장소 인터페이스 (Mongo 스타일 필터)"""

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]: ...

    async def find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    async def find(
        self,
        collection: str,
        query: Dict[str, Any],
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
        projection: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]: ...

    async def count(self, collection: str, query: Dict[str, Any]) -> int: ...

    async def distinct(self, collection: str, key: str, query: Optional[Dict[str, Any]] = None) -> List[Any]: ...

    async def update_one(self, collection: str, query: Dict[str, Any], values: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    async def update_many(self, collection: str, query: Dict[str, Any], values: Dict[str, Any]) -> int: ...

    async def delete_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    async def delete_many(self, collection: str, query: Dict[str, Any]) -> int: ...


class MotorDocumentStore:
    """motor 기반 DocumentStore 구현"""

    def __init__(self, database: AsyncIOMotorDatabase):
        self.database = database

    async def insert_one(self, collection, document):
        result = await self.database[collection].insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def find_one(self, collection, query):
        return await self.database[collection].find_one(query)

    async def find(self, collection, query, sort=None, skip=0, limit=0, projection=None):
        cursor = self.database[collection].find(query, projection)
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def count(self, collection, query):
        return await self.database[collection].count_documents(query)

    async def distinct(self, collection, key, query=None):
        return await self.database[collection].distinct(key, query or {})

    async def update_one(self, collection, query, values):
        return await self.database[collection].find_one_and_update(
            query, {"$set": values}, return_document=ReturnDocument.AFTER
        )

    async def update_many(self, collection, query, values):
        result = await self.database[collection].update_many(query, {"$set": values})
        return result.modified_count

    async def delete_one(self, collection, query):
        return await self.database[collection].find_one_and_delete(query)

    async def delete_many(self, collection, query):
        result = await self.database[collection].delete_many(query)
        return result.deleted_count

    async def ping(self) -> bool:
        await self.database.command("ping")
        return True

    async def ensure_indexes(self):
        for collection, indexes in INDEXES.items():
            for keys in indexes:
                await self.database[collection].create_index(keys)
        logger.info("MongoDB indexes ensured.", extra={"collections": list(INDEXES)})


def create_mongo_client(settings: Settings) -> AsyncIOMotorClient:
    try:
        client = AsyncIOMotorClient(settings.MONGODB_URI, tz_aware=True)
        logger.info("MongoDB client initialized.", extra={"database": settings.MONGODB_DATABASE})
        return client
    except Exception as e:
        logger.error("Failed to initialize MongoDB client.", extra={"error": str(e)}, exc_info=True)
        raise


def create_document_store(client: AsyncIOMotorClient, settings: Settings) -> MotorDocumentStore:
    return MotorDocumentStore(client[settings.MONGODB_DATABASE])

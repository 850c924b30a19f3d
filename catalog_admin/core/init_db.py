import logging

from catalog_admin.config.database import CATEGORIES, DocumentStore
from catalog_admin.services.category_manager import CategoryManager

logger = logging.getLogger(__name__)

# (이름, 하위 트리)
SAMPLE_CATEGORY_TREE = [
    ("Clothing", [
        ("Tops", [("T-Shirts", []), ("Shirts", [])]),
        ("Bottoms", [("Jeans", []), ("Shorts", [])]),
    ]),
    ("Accessories", [
        ("Bags", []),
    ]),
]


async def initialize_categories(store: DocumentStore) -> int:
    """카테고리가 비어 있을 때만 샘플 트리 생성. 생성한 개수 반환"""
    existing = await store.find(CATEGORIES, {}, limit=1)
    if existing:
        logger.info("Categories already initialized, skipping")
        return 0

    manager = CategoryManager(store)
    created = 0

    async def create_tree(nodes, parent_id=None, level=1):
        nonlocal created
        for name, children in nodes:
            category = await manager.create({"name": name, "level": level, "parentId": parent_id})
            created += 1
            await create_tree(children, category["_id"], level + 1)

    await create_tree(SAMPLE_CATEGORY_TREE)
    logger.info("Categories initialized successfully", extra={"created_count": created})
    return created

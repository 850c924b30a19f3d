import pytest
from fastapi.testclient import TestClient

from catalog_admin.api.dependencies import get_store
from catalog_admin.main import app
from catalog_admin.services.category_manager import CategoryManager
from catalog_admin.services.product_aggregator import ProductAggregator
from catalog_admin.services.variant_query import VariantQueryEngine
from tests.fakes import InMemoryDocumentStore


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def category_manager(store):
    return CategoryManager(store)


@pytest.fixture
def product_aggregator(store):
    return ProductAggregator(store)


@pytest.fixture
def variant_engine(store, category_manager):
    return VariantQueryEngine(store, category_manager)


@pytest.fixture
async def category_tree(category_manager):
    """Clothing > Tops > T-Shirts, plus a second root Accessories."""
    clothing = await category_manager.create({"name": "Clothing", "level": 1})
    tops = await category_manager.create({"name": "Tops", "level": 2, "parentId": str(clothing["_id"])})
    tshirts = await category_manager.create({"name": "T-Shirts", "level": 3, "parentId": str(tops["_id"])})
    accessories = await category_manager.create({"name": "Accessories", "level": 1})
    return {"clothing": clothing, "tops": tops, "tshirts": tshirts, "accessories": accessories}


@pytest.fixture
def client(store):
    """TestClient without lifespan; the in-memory store replaces MongoDB."""
    app.dependency_overrides[get_store] = lambda: store
    app.state.store = store
    yield TestClient(app)
    app.dependency_overrides.clear()
    del app.state.store

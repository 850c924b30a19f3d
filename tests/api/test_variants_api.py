import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from catalog_admin.main import app
from tests.fakes import variant_payload

PREFIX = "/api/admin/variants"


@pytest.fixture
def product_id(client):
    category = client.post("/api/admin/categories/", json={"name": "Clothing", "level": 1}).json()
    product = client.post(
        "/api/admin/products/", json={"name": "Basic Tee", "sku": "TEE-001", "categoryId": category["id"]}
    ).json()
    return product["id"]


def _create(client, product_id, color, sku, **overrides):
    response = client.post(f"{PREFIX}/", json=variant_payload(product_id, color, sku=sku, **overrides))
    assert response.status_code == 201, response.text
    return response.json()


class TestVariantEndpoints:
    def test_create_and_get(self, client, product_id):
        created = _create(client, product_id, "red", "TEE-R1")

        assert created["productId"] == product_id
        assert created["color"]["actualColor"] == "red"

        fetched = client.get(f"{PREFIX}/{created['id']}").json()
        assert fetched["product"] == {"id": product_id, "name": "Basic Tee", "sku": "TEE-001", "categoryId": fetched["product"]["categoryId"]}

    def test_create_invalid_size(self, client, product_id):
        response = client.post(
            f"{PREFIX}/", json=variant_payload(product_id, "red", sizes=[{"size": "XS", "stock": 1}])
        )
        assert response.status_code == 400
        assert "errors" in response.json()

    def test_list_paginated(self, client, product_id):
        for index in range(3):
            _create(client, product_id, "red", f"TEE-R{index}")

        body = client.get(f"{PREFIX}/", params={"productId": product_id, "_limit": 2, "_page": 2}).json()

        assert body["total"] == 3
        assert body["currentPage"] == 2
        assert body["totalPages"] == 2
        assert [variant["sku"] for variant in body["data"]] == ["TEE-R2"]

    def test_colors_and_related(self, client, product_id):
        red = _create(client, product_id, "red", "TEE-R1")
        _create(client, product_id, "red", "TEE-R2")
        blue = _create(client, product_id, "blue", "TEE-B1")

        colors = client.get(f"{PREFIX}/colors-variant/{blue['id']}").json()
        assert colors["productId"] == product_id
        assert [entry["variantId"] for entry in colors["data"]] == [red["id"], blue["id"]]

        by_product = client.post(f"{PREFIX}/colors-product/{product_id}")
        assert by_product.json()["data"] == colors["data"]

        related = client.get(f"{PREFIX}/{red['id']}/related-variants").json()
        assert [variant["sku"] for variant in related["data"]] == ["TEE-R2", "TEE-B1"]

    def test_representative_and_unique_products(self, client, product_id):
        red = _create(client, product_id, "red", "TEE-R1")
        _create(client, product_id, "blue", "TEE-B1")

        representatives = client.get(f"{PREFIX}/representative").json()["data"]
        assert [variant["id"] for variant in representatives] == [red["id"]]

        legacy = client.get(f"{PREFIX}/representativeVariant")
        assert legacy.status_code == 200
        assert legacy.json()["data"] == representatives

        products = client.get(f"{PREFIX}/products-unique").json()
        assert [product["id"] for product in products] == [product_id]

    def test_by_color_and_search(self, client, product_id):
        _create(client, product_id, "red", "TEE-R1", price=10)
        blue = _create(client, product_id, "blue", "TEE-B1", price=30)

        by_color = client.post(f"{PREFIX}/by-color", json={"actualColor": "blue"}).json()
        assert [variant["id"] for variant in by_color["data"]] == [blue["id"]]

        search = client.post(f"{PREFIX}/search", json={"q": "tee", "minPrice": 20}).json()
        assert search["total"] == 1
        assert search["data"][0]["id"] == blue["id"]

        assert client.post(f"{PREFIX}/by-color", json={}).status_code == 400

    def test_by_category(self, client, product_id):
        _create(client, product_id, "red", "TEE-R1")
        category_id = client.get(f"/api/admin/products/{product_id}").json()["categoryId"]

        body = client.post(f"{PREFIX}/by-category", json={"categoryId": category_id}).json()
        assert body["total"] == 1

        missing = client.post(f"{PREFIX}/by-category", json={"categoryId": str(ObjectId())})
        assert missing.status_code == 404

    def test_update_and_delete(self, client, product_id):
        variant = _create(client, product_id, "red", "TEE-R1")

        updated = client.patch(f"{PREFIX}/{variant['id']}", json={"price": 12.5})
        assert updated.status_code == 200
        assert updated.json()["data"]["price"] == 12.5

        deleted = client.delete(f"{PREFIX}/{variant['id']}")
        assert deleted.status_code == 200
        assert client.get(f"{PREFIX}/{variant['id']}").status_code == 404


class TestViewHistoryEndpoints:
    def test_recently_viewed_requires_identity(self, client):
        response = client.get(f"{PREFIX}/recently-viewed")
        assert response.status_code == 401

    def test_record_and_read(self, client, product_id):
        variant = _create(client, product_id, "red", "TEE-R1")
        headers = {"X-User-Id": "user-1"}

        response = client.post(f"{PREFIX}/{variant['id']}/views", headers=headers)
        assert response.status_code == 204

        recent = client.get(f"{PREFIX}/recently-viewed", headers=headers).json()
        assert [entry["id"] for entry in recent["data"]] == [variant["id"]]

        other = client.get(f"{PREFIX}/recently-viewed", headers={"X-User-Id": "user-2"}).json()
        assert other["data"] == []


class TestHealthAndErrors:
    def test_liveness(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_readiness(self, client, store):
        assert client.get("/health/ready").status_code == 200

        store.fail_with = RuntimeError("connection refused")
        assert client.get("/health/ready").status_code == 503

    def test_unexpected_error_is_500(self, client, store):
        store.fail_with = RuntimeError("connection refused")

        response = TestClient(app, raise_server_exceptions=False).get(f"{PREFIX}/representative")

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error", "error": "connection refused"}

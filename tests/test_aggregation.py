from bson import ObjectId

from catalog_admin.core.aggregation import available_colors, group_by_product, select_representative
from catalog_admin.core.query import contains, page_envelope, sort_spec, total_pages


def _variant(product_id, actual_color, **extra):
    return {"_id": ObjectId(), "productId": product_id, "color": {"actualColor": actual_color, "baseColor": actual_color}, **extra}


class TestAvailableColors:
    def test_first_seen_wins(self):
        product_id = ObjectId()
        v1, v2, v3 = _variant(product_id, "red"), _variant(product_id, "red"), _variant(product_id, "blue")

        assert available_colors([v1, v2, v3]) == [
            {"variantId": v1["_id"], "actualColor": "red"},
            {"variantId": v3["_id"], "actualColor": "blue"},
        ]

    def test_detailed_entries(self):
        variant = _variant(ObjectId(), "navy")
        variant["color"]["colorName"] = "Midnight"

        assert available_colors([variant], detailed=True) == [
            {"variantId": variant["_id"], "actualColor": "navy", "baseColor": "navy", "colorName": "Midnight"},
        ]

    def test_variants_without_color_skipped(self):
        assert available_colors([{"_id": ObjectId(), "productId": ObjectId()}]) == []


class TestSelectRepresentative:
    def test_falls_back_to_oldest(self):
        product_id = ObjectId()
        variants = [_variant(product_id, "red"), _variant(product_id, "blue")]

        assert select_representative({"_id": product_id}, variants) is variants[0]

    def test_stored_id(self):
        product_id = ObjectId()
        variants = [_variant(product_id, "red"), _variant(product_id, "blue")]
        product = {"_id": product_id, "representativeVariantId": variants[1]["_id"]}

        assert select_representative(product, variants) is variants[1]

    def test_stored_id_resolved_from_referenced(self):
        product_id = ObjectId()
        stored = _variant(product_id, "green")
        product = {"_id": product_id, "representativeVariantId": stored["_id"]}

        assert select_representative(product, [], {stored["_id"]: stored}) is stored

    def test_dangling_stored_id(self):
        product_id = ObjectId()
        variants = [_variant(product_id, "red")]
        product = {"_id": product_id, "representativeVariantId": ObjectId()}

        assert select_representative(product, variants) is variants[0]
        assert select_representative(product, []) is None


def test_group_by_product_keeps_order():
    first, second = ObjectId(), ObjectId()
    variants = [_variant(first, "red"), _variant(second, "red"), _variant(first, "blue")]

    groups = group_by_product(variants)

    assert [variant["color"]["actualColor"] for variant in groups[first]] == ["red", "blue"]
    assert len(groups[second]) == 1


def test_total_pages():
    assert total_pages(25, 10) == 3
    assert total_pages(20, 10) == 2
    assert total_pages(0, 10) == 0


def test_page_envelope():
    assert page_envelope([1, 2], 12, 2, 10) == {"data": [1, 2], "total": 12, "currentPage": 2, "totalPages": 2}


def test_sort_spec_adds_tiebreaker():
    assert sort_spec("price", "desc") == [("price", -1), ("_id", -1)]
    assert sort_spec("_id", "asc") == [("_id", 1)]


def test_contains_escapes_pattern():
    assert contains("a.b") == {"$regex": r"a\.b", "$options": "i"}
